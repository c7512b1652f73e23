from __future__ import annotations

from typing import Optional

from pydantic import ConfigDict, Field, field_validator

from schemas.base import SchemaBase

MIN_KEYWORDS = 5
MAX_KEYWORDS = 7
MIN_FAQS = 3


class BlogMetadata(SchemaBase):
    """Title/angle/keywords produced once per run; frozen afterwards."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    title: str = Field(..., min_length=1)
    angle: str = Field(..., min_length=1)
    keywords: list[str] = Field(..., min_length=MIN_KEYWORDS)

    @field_validator("title", "angle")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("keywords")
    @classmethod
    def _clean_keywords(cls, v: list[str]) -> list[str]:
        cleaned = [k.strip() for k in v if k and k.strip()]
        if len(cleaned) < MIN_KEYWORDS:
            raise ValueError(f"expected at least {MIN_KEYWORDS} keywords, got {len(cleaned)}")
        return cleaned[:MAX_KEYWORDS]


class FaqItem(SchemaBase):
    model_config = ConfigDict(extra="ignore")

    question: str = Field(..., min_length=1)
    answer: str = Field(..., min_length=1)


class FaqList(SchemaBase):
    model_config = ConfigDict(extra="ignore")

    faqs: list[FaqItem] = Field(..., min_length=MIN_FAQS)


class BlogPost(SchemaBase):
    """The assembled article. Only ever built from a fully successful run."""

    model_config = ConfigDict(frozen=True)

    title: str
    angle: str
    keywords: list[str]
    outline: str
    content: str
    featured_image_base64: str

    topic: Optional[str] = None
    client_id: Optional[str] = None
    generated_at: Optional[str] = None
