from __future__ import annotations

import config
from agents.base import BaseAgent
from agents.gateway import Gateway
from schemas.blog import BlogMetadata
from schemas.client import ClientProfile
from schemas.generation import json_output

BLOG_DETAILS_SCHEMA = {
    "type": "object",
    "properties": {
        "title": {"type": "string", "description": "A compelling, SEO-friendly blog post title."},
        "angle": {"type": "string", "description": "A unique angle or perspective for the article."},
        "keywords": {
            "type": "array",
            "items": {"type": "string"},
            "description": "A list of 5-7 relevant SEO keywords.",
        },
    },
    "required": ["title", "angle", "keywords"],
}


class BlogMetadataAgent(BaseAgent):
    name = "blog-metadata"

    def __init__(self, gateway: Gateway, *, model: str = config.TEXT_MODEL) -> None:
        super().__init__(gateway, model=model)

    def build_prompt(self, client: ClientProfile, topic: str) -> str:
        return "\n".join([
            f"// Client ID: {client.id}",
            f"You are an expert content strategist for a company in the '{client.industry}' industry.",
            f"Company's unique value proposition: '{client.unique_value_prop}'",
            f"Company's brand voice: '{client.brand_voice}'",
            f"Company's content strategy: '{client.content_strategy}'",
            f"We want to write a blog post about the following topic: '{topic}'",
            "",
            "Please generate a compelling, SEO-friendly blog post title, a unique angle for the article, "
            "and a list of 5-7 relevant SEO keywords.",
        ])

    def run(self, client: ClientProfile, topic: str) -> BlogMetadata:
        raw = self._text(self.build_prompt(client, topic), json_output(BLOG_DETAILS_SCHEMA))
        return self._parse_structured(raw, BlogMetadata)
