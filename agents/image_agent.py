from __future__ import annotations

import config
from agents.base import BaseAgent
from agents.errors import ProxyError
from agents.gateway import Gateway
from schemas.generation import ImageGeneration

# Keep prompts brand-safe: no text overlays.
STYLE_SUFFIX = "A cinematic, photorealistic, high-quality image, no text or words on the image."


def build_image_prompt(seed: str) -> str:
    seed = (seed or "").strip().rstrip(".")
    return f"{seed}. {STYLE_SUFFIX}" if seed else STYLE_SUFFIX


class ImageGenerationAgent(BaseAgent):
    """
    Shared by inline images (seeded by a heading) and the featured image
    (seeded by "title. angle"). Returns base64-encoded JPEG data.
    """

    name = "image-generation"

    def __init__(
        self,
        gateway: Gateway,
        *,
        model: str = config.IMAGE_MODEL,
        aspect_ratio: str = "16:9",
    ) -> None:
        super().__init__(gateway, model=model)
        self.options = ImageGeneration(number_of_images=1, aspect_ratio=aspect_ratio, output_mime_type="image/jpeg")

    def run(self, prompt_seed: str) -> str:
        resp = self.gateway.invoke_model(self.model, build_image_prompt(prompt_seed), self.options)
        if not resp.image_bytes:
            raise ProxyError("no image produced")
        return resp.image_bytes

    def featured(self, title: str, angle: str) -> str:
        return self.run(f"{title.strip().rstrip('.')}. {angle}")
