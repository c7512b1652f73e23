from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Optional

import config
from agents.base import BaseAgent
from agents.errors import PartialStageFailure
from agents.faq_agent import FaqAgent
from agents.gateway import Gateway
from agents.image_agent import ImageGenerationAgent
from app_logging.run_logger import RunLogger
from lib.html_content import (
    Heading,
    find_headings,
    image_tag,
    insert_after_headings,
    police_internal_links,
    remove_h1,
    strip_code_fences,
)
from schemas.client import ClientProfile
from schemas.generation import TextGeneration

NO_SITEMAP_MARKER = "No sitemap URLs available."


@dataclass
class ContentResult:
    content: str
    inline_images: int = 0
    image_failures: list[PartialStageFailure] = field(default_factory=list)
    removed_links: list[str] = field(default_factory=list)


class ContentAgent(BaseAgent):
    """
    Writes the HTML body, then finishes it locally:

      1. strip code fences and any H1 (the title is added downstream)
      2. unwrap internal links that are not in the client's sitemap
      3. add up to `max_inline_images` images under the first H2/H3 headings
      4. append the FAQ block

    A failed inline image is logged and skipped; every other failure propagates.
    """

    name = "content"

    def __init__(
        self,
        gateway: Gateway,
        *,
        image_agent: Optional[ImageGenerationAgent] = None,
        faq_agent: Optional[FaqAgent] = None,
        model: str = config.TEXT_MODEL,
        max_inline_images: int = config.MAX_INLINE_IMAGES,
        image_workers: int = config.INLINE_IMAGE_WORKERS,
        run_logger: Optional[RunLogger] = None,
    ) -> None:
        super().__init__(gateway, model=model)
        self.image_agent = image_agent or ImageGenerationAgent(gateway)
        self.faq_agent = faq_agent or FaqAgent(gateway)
        self.max_inline_images = max(0, min(config.INLINE_IMAGE_LIMIT, int(max_inline_images)))
        self.image_workers = max(1, min(config.INLINE_IMAGE_LIMIT, int(image_workers)))
        self.run_logger = run_logger

    def build_prompt(self, title: str, outline: str, client: ClientProfile) -> str:
        if client.sitemap_urls:
            link_pool = "\n      ".join(client.sitemap_urls)
            link_rule = (
                "- **CRITICAL:** Include between 4 and 8 internal HTML hyperlinks to relevant pages/blogs on the "
                "client's website. These links MUST be contextually relevant and naturally integrated into the "
                "content. Select these links ONLY from the following list of URLs:\n"
                f"      {link_pool}"
            )
        else:
            link_rule = (
                f"- Internal links: {NO_SITEMAP_MARKER} Do not add any links to the client's own website."
            )

        return "\n".join([
            f"// Client ID: {client.id}",
            "Write a complete blog post in HTML format based on the provided title and outline.",
            f"Title (H1): '{title}'",
            "Outline:",
            outline,
            "",
            "Follow these instructions:",
            f"- Adhere to the client's content strategy: '{client.content_strategy}'.",
            "- Elaborate on each point in the outline. Use <p> tags for paragraphs.",
            "- Use <h2> and <h3> tags exactly as specified in the outline.",
            "- Do NOT include the H1 title in the generated content; it will be added separately.",
            f"- Write in the following brand voice: '{client.brand_voice}'.",
            f"- Naturally incorporate the company's unique value proposition where relevant: '{client.unique_value_prop}'.",
            "- Ensure the tone is confident and expert. Avoid apologetic language or AI self-references.",
            "- The content must be original and engaging.",
            "- **IMPORTANT:** Include external HTML hyperlinks to relevant, high-authority referencing material "
            "where appropriate.",
            link_rule,
        ])

    def _image_for(self, heading: Heading) -> str:
        try:
            return self.image_agent.run(heading.text)
        except Exception as e:
            raise PartialStageFailure(heading.text, e) from e

    def _add_inline_images(
        self, content: str, run_logger: Optional[RunLogger]
    ) -> tuple[str, int, list[PartialStageFailure]]:
        targets = find_headings(content)[: self.max_inline_images]
        if not targets:
            return content, 0, []

        # Images are independent of each other; fan out and join before the FAQ step.
        with ThreadPoolExecutor(max_workers=min(self.image_workers, len(targets))) as pool:
            futures = [(h, pool.submit(self._image_for, h)) for h in targets]

        inserts: list[tuple[Heading, str]] = []
        failures: list[PartialStageFailure] = []
        for heading, fut in futures:
            try:
                inserts.append((heading, image_tag(fut.result(), heading.text)))
            except PartialStageFailure as e:
                failures.append(e)
                print(f"🟠 Inline image skipped for heading '{heading.text}': {e.cause}")
                if run_logger is not None:
                    run_logger.error(self.name, {"heading": heading.text}, e)

        return insert_after_headings(content, inserts), len(inserts), failures

    def generate(
        self,
        title: str,
        outline: str,
        client: ClientProfile,
        *,
        run_logger: Optional[RunLogger] = None,
    ) -> ContentResult:
        raw = self._text(self.build_prompt(title, outline, client), TextGeneration())

        content = remove_h1(strip_code_fences(raw)).strip()
        content, removed = police_internal_links(
            content,
            allowed_urls=client.sitemap_urls,
            internal_hosts=client.internal_hosts(),
        )

        content, image_count, failures = self._add_inline_images(content, run_logger or self.run_logger)

        faq_html = self.faq_agent.run(title, content)
        content = f"{content}\n{faq_html}"

        return ContentResult(
            content=content,
            inline_images=image_count,
            image_failures=failures,
            removed_links=removed,
        )

    def run(self, title: str, outline: str, client: ClientProfile) -> str:
        return self.generate(title, outline, client).content
