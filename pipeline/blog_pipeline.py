from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Optional, Protocol, TypeVar

import config
from agents.content_agent import ContentAgent
from agents.faq_agent import FaqAgent
from agents.gateway import Gateway, build_gateway
from agents.image_agent import ImageGenerationAgent
from agents.metadata_agent import BlogMetadataAgent
from agents.outline_agent import OutlineAgent
from agents.topic_agent import TopicDiscoveryAgent
from app_logging.run_logger import RunLogger
from schemas.blog import BlogPost
from schemas.client import ClientProfile

ProgressSink = Callable[[str], None]
T = TypeVar("T")


class TopicHistory(Protocol):
    def used_topics(self, client_id: str) -> list[str]:
        ...

    def record_topic(self, client_id: str, topic: str) -> None:
        ...


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def _no_progress(_: str) -> None:
    return None


class BlogPipeline:
    """
    Topic -> Metadata -> Outline -> Content (+inline images, +FAQ) -> Featured image -> BlogPost.

    Strictly linear, no retries. Any exception aborts the run and no BlogPost exists;
    the only absorbed failure is an inline image inside the content stage.
    A progress message is emitted after each stage completes.

    The pipeline keeps nothing between runs. With a topic_history, previously used
    topics are fed to topic discovery and the new topic is recorded only after the
    post is assembled.
    """

    def __init__(
        self,
        gateway: Gateway,
        *,
        topic_history: Optional[TopicHistory] = None,
        text_model: str = config.TEXT_MODEL,
        image_model: str = config.IMAGE_MODEL,
        max_inline_images: int = config.MAX_INLINE_IMAGES,
    ) -> None:
        self.topic_history = topic_history
        self.image_agent = ImageGenerationAgent(gateway, model=image_model)
        self.topic_agent = TopicDiscoveryAgent(gateway, model=text_model)
        self.metadata_agent = BlogMetadataAgent(gateway, model=text_model)
        self.outline_agent = OutlineAgent(gateway, model=text_model)
        self.content_agent = ContentAgent(
            gateway,
            model=text_model,
            image_agent=self.image_agent,
            faq_agent=FaqAgent(gateway, model=text_model),
            max_inline_images=max_inline_images,
        )

    @staticmethod
    def _stage(
        run_logger: Optional[RunLogger],
        stage: str,
        input: Any,
        fn: Callable[[], T],
        summarize: Callable[[T], Any] = lambda out: out,
    ) -> T:
        if run_logger is None:
            return fn()
        run_logger.start(stage, input)
        try:
            out = fn()
        except Exception as e:
            run_logger.error(stage, input, e)
            raise
        run_logger.end(stage, summarize(out))
        return out

    def generate(
        self,
        client: ClientProfile,
        progress: Optional[ProgressSink] = None,
        *,
        run_logger: Optional[RunLogger] = None,
    ) -> BlogPost:
        emit = progress or _no_progress

        used_topics = self.topic_history.used_topics(client.id) if self.topic_history is not None else []

        topic = self._stage(
            run_logger, "topic", {"industry": client.industry, "used_topics": len(used_topics)},
            lambda: self.topic_agent.run(client, used_topics),
        )
        emit(f'Found trending topic: "{topic}"')

        meta = self._stage(
            run_logger, "metadata", {"topic": topic},
            lambda: self.metadata_agent.run(client, topic),
            lambda m: m.to_dict(),
        )
        emit(f'Generated title, angle, and keywords: "{meta.title}"')

        outline = self._stage(
            run_logger, "outline", {"title": meta.title},
            lambda: self.outline_agent.run(meta.title, meta.angle),
            lambda o: {"chars": len(o)},
        )
        emit("Created blog post outline.")

        result = self._stage(
            run_logger, "content", {"title": meta.title, "sitemap_urls": len(client.sitemap_urls)},
            lambda: self.content_agent.generate(meta.title, outline, client, run_logger=run_logger),
            lambda r: {
                "chars": len(r.content),
                "inline_images": r.inline_images,
                "image_failures": len(r.image_failures),
                "removed_links": r.removed_links,
            },
        )
        emit(f"Wrote full blog post content with {result.inline_images} inline image(s) and an FAQ section.")

        featured = self._stage(
            run_logger, "featured_image", {"title": meta.title},
            lambda: self.image_agent.featured(meta.title, meta.angle),
            lambda b64: {"base64_chars": len(b64)},
        )
        emit("Generated featured image.")

        post = BlogPost(
            title=meta.title,
            angle=meta.angle,
            keywords=list(meta.keywords),
            outline=outline,
            content=result.content,
            featured_image_base64=featured,
            topic=topic,
            client_id=client.id,
            generated_at=_utc_now_iso(),
        )

        if self.topic_history is not None:
            self.topic_history.record_topic(client.id, topic)

        emit("Finalized post.")
        return post


def generate_full_blog(
    client: ClientProfile,
    progress: Optional[ProgressSink] = None,
    *,
    gateway: Optional[Gateway] = None,
    topic_history: Optional[TopicHistory] = None,
    run_logger: Optional[RunLogger] = None,
) -> BlogPost:
    pipeline = BlogPipeline(gateway or build_gateway(), topic_history=topic_history)
    return pipeline.generate(client, progress, run_logger=run_logger)
