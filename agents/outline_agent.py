from __future__ import annotations

import config
from agents.base import BaseAgent
from agents.gateway import Gateway
from schemas.generation import TextGeneration


class OutlineAgent(BaseAgent):
    """Plain-text H2/H3 outline. Best effort: the structure is not validated."""

    name = "outline"

    def __init__(self, gateway: Gateway, *, model: str = config.TEXT_MODEL) -> None:
        super().__init__(gateway, model=model)

    def run(self, title: str, angle: str) -> str:
        prompt = "\n".join([
            "Based on the following title and angle, create a detailed blog post outline.",
            f"Title: '{title}'",
            f"Angle: '{angle}'",
            "",
            "The outline should have a clear hierarchical structure with H2 and H3 headings. "
            "Include an introduction and a conclusion. The blog title itself will be the H1, "
            "so do not include it in the outline. Output only the outline.",
        ])
        return self._text(prompt, TextGeneration())
