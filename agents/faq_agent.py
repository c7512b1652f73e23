from __future__ import annotations

import html
import json

import config
from agents.base import BaseAgent
from agents.gateway import Gateway
from lib.html_content import strip_images
from schemas.blog import FaqItem, FaqList
from schemas.generation import json_output

FAQ_SCHEMA = {
    "type": "object",
    "properties": {
        "faqs": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "question": {"type": "string", "description": "A frequently asked question related to the blog post."},
                    "answer": {"type": "string", "description": "The answer to the question."},
                },
                "required": ["question", "answer"],
            },
        },
    },
    "required": ["faqs"],
}


def faq_page_schema(faqs: list[FaqItem]) -> dict:
    return {
        "@context": "https://schema.org",
        "@type": "FAQPage",
        "mainEntity": [
            {
                "@type": "Question",
                "name": f.question,
                "acceptedAnswer": {"@type": "Answer", "text": f.answer},
            }
            for f in faqs
        ],
    }


def render_faq_section(faqs: list[FaqItem]) -> str:
    """FAQ block plus a JSON-LD FAQPage script carrying the same Q/A pairs."""
    parts = ['<div class="faq-section">', "<h2>Frequently Asked Questions</h2>"]
    for f in faqs:
        parts.append(f"<h3>{html.escape(f.question)}</h3>")
        parts.append(f"<p>{html.escape(f.answer)}</p>")
    parts.append("</div>")

    # "</" inside a script body would close the tag early.
    ld_json = json.dumps(faq_page_schema(faqs), ensure_ascii=False).replace("</", "<\\/")
    parts.append(f'<script type="application/ld+json">{ld_json}</script>')
    return "\n".join(parts)


class FaqAgent(BaseAgent):
    name = "faq"

    def __init__(
        self,
        gateway: Gateway,
        *,
        model: str = config.TEXT_MODEL,
        content_chars: int = config.FAQ_CONTENT_CHARS,
    ) -> None:
        super().__init__(gateway, model=model)
        self.content_chars = content_chars

    def build_prompt(self, title: str, content: str) -> str:
        # Inline images are base64 blobs; never spend the excerpt budget on them.
        excerpt = strip_images(content)[: self.content_chars]
        return "\n".join([
            "Based on the following blog post title and content, generate a list of at least 3 "
            "frequently asked questions (FAQs) with their answers.",
            "",
            f"Title: {title}",
            "",
            "Content:",
            f"{excerpt}...",
            "",
            "Return the FAQs in a JSON object that conforms to the provided schema.",
        ])

    def generate(self, title: str, content: str) -> FaqList:
        raw = self._text(self.build_prompt(title, content), json_output(FAQ_SCHEMA))
        return self._parse_structured(raw, FaqList)

    def run(self, title: str, content: str) -> str:
        return render_faq_section(self.generate(title, content).faqs)
