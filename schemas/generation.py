from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Literal, Optional, Union

from pydantic import Field

from schemas.base import SchemaBase


class TextGeneration(SchemaBase):
    """
    Options for a text request.

    response_schema constrains the output to a JSON shape; the gateway still
    returns it as serialized text. web_search turns on search grounding.
    """

    mode: Literal["text"] = "text"
    response_mime_type: Optional[str] = None
    response_schema: Optional[Dict[str, Any]] = None
    web_search: bool = False

    def to_config(self) -> Dict[str, Any]:
        config: Dict[str, Any] = {}
        if self.response_mime_type:
            config["responseMimeType"] = self.response_mime_type
        if self.response_schema is not None:
            config["responseSchema"] = self.response_schema
        if self.web_search:
            config["tools"] = [{"googleSearch": {}}]
        return config


class ImageGeneration(SchemaBase):
    mode: Literal["image"] = "image"
    number_of_images: int = Field(1, ge=1, le=4)
    aspect_ratio: str = "16:9"
    output_mime_type: str = "image/jpeg"

    def to_config(self) -> Dict[str, Any]:
        return {
            "isImageGeneration": True,
            "numberOfImages": self.number_of_images,
            "aspectRatio": self.aspect_ratio,
            "outputMimeType": self.output_mime_type,
        }


GenerationOptions = Union[TextGeneration, ImageGeneration]


def json_output(schema: Dict[str, Any]) -> TextGeneration:
    return TextGeneration(response_mime_type="application/json", response_schema=schema)


@dataclass(frozen=True)
class GatewayResponse:
    text: Optional[str] = None
    image_bytes: Optional[str] = None
