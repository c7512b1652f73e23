from __future__ import annotations

from typing import Optional
from urllib.parse import urlparse

from pydantic import Field, field_validator

from schemas.base import SchemaBase


class WordPressCredentials(SchemaBase):
    """Opaque publishing credentials. Stored, never used by generation."""
    url: Optional[str] = None
    username: Optional[str] = None
    app_password: Optional[str] = None


class ClientProfile(SchemaBase):
    id: str = Field(..., min_length=1, description="Stable client identifier")
    name: str = Field("", description="Display name")
    industry: str = Field(..., min_length=1, description="Industry used for topic discovery")
    website_url: str = Field("", description="Client homepage")
    unique_value_prop: str = Field("", description="What sets the client apart")
    brand_voice: str = Field("", description="Tone the content must be written in")
    content_strategy: str = Field("", description="Editorial goals for the blog")
    sitemap_urls: list[str] = Field(default_factory=list, description="Internal link pool")
    wp: Optional[WordPressCredentials] = None

    @field_validator("sitemap_urls")
    @classmethod
    def _dedupe_urls(cls, v: list[str]) -> list[str]:
        seen: set[str] = set()
        out: list[str] = []
        for raw in v:
            s = str(raw or "").strip()
            if s and s not in seen:
                seen.add(s)
                out.append(s)
        return out

    def internal_hosts(self) -> set[str]:
        """Hosts that count as 'the client's own site' for link policing."""
        hosts: set[str] = set()
        for u in [self.website_url, *self.sitemap_urls]:
            host = (urlparse(u or "").netloc or "").lower()
            if host.startswith("www."):
                host = host[4:]
            if host:
                hosts.add(host)
        return hosts
