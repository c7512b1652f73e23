from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from urllib.parse import urljoin, urlparse


@dataclass(frozen=True)
class UrlFixResult:
    original: str
    normalized: str
    changed: bool


def normalize_url(raw: str, *, base_url: Optional[str] = None) -> UrlFixResult:
    """
    Normalize a URL taken from a sitemap or typed by an operator into a
    fully-qualified http(s) URL. Safe normalizations only.

    Rules:
      - If already valid http(s) URL -> unchanged
      - If starts with 'www.' -> prefix https://
      - If starts with '/' and base_url is given -> resolve against base_url
      - Anything else -> ValueError
    """
    if raw is None:
        raise ValueError("URL is None")

    s = str(raw).strip()
    if not s:
        raise ValueError("URL is empty")

    if s.lower().startswith("www."):
        return UrlFixResult(original=s, normalized="https://" + s, changed=True)

    if s.startswith("/") and not s.startswith("//") and base_url:
        return UrlFixResult(original=s, normalized=urljoin(base_url, s), changed=True)

    parsed = urlparse(s)
    if parsed.scheme in ("http", "https") and parsed.netloc:
        return UrlFixResult(original=s, normalized=s, changed=False)

    raise ValueError(f"Invalid url: {s}")


def is_valid_http_url(raw: str) -> bool:
    try:
        res = normalize_url(raw)
    except ValueError:
        return False
    parsed = urlparse(res.normalized)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)
