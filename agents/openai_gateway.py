from __future__ import annotations

from typing import Any, Dict, Optional

import openai
from openai import OpenAI

import config
from agents.errors import ProxyError
from agents.gateway import Payload
from schemas.generation import GatewayResponse, GenerationOptions, ImageGeneration, TextGeneration

# gpt-image-1 only renders a few fixed sizes; map the requested aspect ratio onto the closest one.
_ASPECT_TO_SIZE = {
    "1:1": "1024x1024",
    "16:9": "1536x1024",
    "4:3": "1536x1024",
    "3:2": "1536x1024",
    "9:16": "1024x1536",
    "3:4": "1024x1536",
    "2:3": "1024x1536",
}

_MIME_TO_FORMAT = {
    "image/jpeg": "jpeg",
    "image/png": "png",
    "image/webp": "webp",
}


def _as_prompt_text(payload: Payload) -> str:
    if isinstance(payload, str):
        return payload
    parts: list[str] = []
    for item in payload:
        text = item.get("text") or item.get("content")
        if isinstance(text, str) and text.strip():
            parts.append(text.strip())
    return "\n\n".join(parts)


class OpenAIGateway:
    """
    Same contract as the proxy gateway, served straight from the OpenAI API.

    Text goes through the Responses API (web_search tool, json_schema format);
    images go through images.generate and come back as base64.
    """

    def __init__(self, client: Optional[OpenAI] = None, *, timeout: float = config.GATEWAY_TIMEOUT_SECONDS) -> None:
        self.client = client or OpenAI(api_key=config.OPENAI_API_KEY or None, timeout=timeout)

    def invoke_model(self, model_id: str, payload: Payload, options: GenerationOptions) -> GatewayResponse:
        try:
            if isinstance(options, ImageGeneration):
                return self._generate_image(model_id, payload, options)
            return self._generate_text(model_id, payload, options)
        except openai.APIStatusError as e:
            raise ProxyError("OpenAI request failed", status=e.status_code, details=str(e)) from e
        except openai.APIError as e:
            raise ProxyError(f"OpenAI request failed: {e}") from e

    def _generate_text(self, model_id: str, payload: Payload, options: TextGeneration) -> GatewayResponse:
        kwargs: Dict[str, Any] = {"model": model_id, "input": payload}
        if options.web_search:
            kwargs["tools"] = [{"type": "web_search"}]
        if options.response_schema is not None:
            kwargs["text"] = {
                "format": {
                    "type": "json_schema",
                    "name": "structured_output",
                    "schema": options.response_schema,
                    "strict": False,
                }
            }
        resp = self.client.responses.create(**kwargs)
        return GatewayResponse(text=resp.output_text or "")

    def _generate_image(self, model_id: str, payload: Payload, options: ImageGeneration) -> GatewayResponse:
        resp = self.client.images.generate(
            model=model_id,
            prompt=_as_prompt_text(payload),
            n=options.number_of_images,
            size=_ASPECT_TO_SIZE.get(options.aspect_ratio, "1024x1024"),
            output_format=_MIME_TO_FORMAT.get(options.output_mime_type, "jpeg"),
        )
        data = list(resp.data or [])
        b64 = getattr(data[0], "b64_json", None) if data else None
        if not b64:
            raise ProxyError("no image produced")
        return GatewayResponse(image_bytes=b64)
