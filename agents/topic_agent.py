from __future__ import annotations

from typing import Sequence

import config
from agents.base import BaseAgent
from agents.errors import SchemaViolation
from agents.gateway import Gateway
from schemas.client import ClientProfile
from schemas.generation import TextGeneration

# Keep the avoid-list short enough that it never dominates the prompt.
MAX_AVOID_TOPICS = 25


class TopicDiscoveryAgent(BaseAgent):
    """Finds one current trending topic for the client's industry via search-grounded generation."""

    name = "topic-discovery"

    def __init__(self, gateway: Gateway, *, model: str = config.TEXT_MODEL) -> None:
        super().__init__(gateway, model=model)

    def build_prompt(self, client: ClientProfile, used_topics: Sequence[str] = ()) -> str:
        lines = [
            f"// Client ID: {client.id}",
            "Using web search, find one current and highly relevant trending topic, news story, "
            f"or popular question related to the '{client.industry}' industry.",
        ]
        recent = [t.strip() for t in used_topics if t and t.strip()][-MAX_AVOID_TOPICS:]
        if recent:
            lines.append("Do not pick any of these topics, which have already been covered:")
            lines.extend(f"- {t}" for t in recent)
        lines.append("Provide only the topic name or headline.")
        return "\n".join(lines)

    def run(self, client: ClientProfile, used_topics: Sequence[str] = ()) -> str:
        topic = self._text(self.build_prompt(client, used_topics), TextGeneration(web_search=True))
        if not topic:
            raise SchemaViolation(f"{self.name}: model returned an empty topic")
        return topic
