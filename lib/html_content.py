from __future__ import annotations

import html
import re
from dataclasses import dataclass
from typing import Iterable
from urllib.parse import urlparse

from bs4 import BeautifulSoup

RE_CODE_FENCE_OPEN = re.compile(r"^\s*```[a-zA-Z0-9_-]*[ \t]*\n?")
RE_CODE_FENCE_CLOSE = re.compile(r"\n?```\s*$")

HEADING_TAGS = ["h2", "h3"]


@dataclass(frozen=True)
class Heading:
    level: int
    text: str
    # Position among all h2/h3 tags of the document it was found in.
    index: int


def _soup(content: str) -> BeautifulSoup:
    return BeautifulSoup(content or "", "html.parser")


def strip_code_fences(text: str) -> str:
    """Remove a ```html ... ``` wrapper the model sometimes puts around its answer."""
    s = (text or "").strip()
    s = RE_CODE_FENCE_OPEN.sub("", s, count=1)
    s = RE_CODE_FENCE_CLOSE.sub("", s, count=1)
    return s.strip()


def remove_h1(content: str) -> str:
    soup = _soup(content)
    for tag in soup.find_all("h1"):
        tag.decompose()
    return str(soup).strip()


def plain_text(fragment: str) -> str:
    return " ".join(_soup(fragment).get_text().split())


def find_headings(content: str) -> list[Heading]:
    """Non-empty H2/H3 headings in document order."""
    out: list[Heading] = []
    for i, tag in enumerate(_soup(content).find_all(HEADING_TAGS)):
        text = " ".join(tag.get_text().split())
        if text:
            out.append(Heading(level=int(tag.name[1]), text=text, index=i))
    return out


def image_tag(image_base64: str, alt: str, *, mime_type: str = "image/jpeg") -> str:
    return f'<img src="data:{mime_type};base64,{image_base64}" alt="{html.escape(alt, quote=True)}" />'


def insert_after_headings(content: str, inserts: Iterable[tuple[Heading, str]]) -> str:
    """Place each snippet directly after its heading, on its own line."""
    soup = _soup(content)
    tags = soup.find_all(HEADING_TAGS)
    for heading, snippet in inserts:
        tag = tags[heading.index]
        for node in reversed(list(_soup(snippet).contents)):
            tag.insert_after(node.extract())
        tag.insert_after("\n")
    return str(soup)


def strip_images(content: str) -> str:
    soup = _soup(content)
    for img in soup.find_all("img"):
        img.decompose()
    return str(soup)


def _host(url: str) -> str:
    host = (urlparse(url).netloc or "").lower()
    return host[4:] if host.startswith("www.") else host


def link_key(url: str) -> str:
    """Comparison key for URLs: scheme-agnostic, www-agnostic, trailing-slash-agnostic."""
    p = urlparse((url or "").strip())
    path = p.path.rstrip("/")
    key = f"{_host(url)}{path}"
    if p.query:
        key += f"?{p.query}"
    return key


def extract_links(content: str) -> list[str]:
    return [a["href"].strip() for a in _soup(content).find_all("a", href=True)]


def _is_internal(href: str, internal_hosts: set[str]) -> bool:
    lowered = href.lower()
    if lowered.startswith(("#", "mailto:", "tel:", "javascript:")):
        return False
    host = _host(href)
    if not host:
        # Relative link: always points at the client's own site.
        return True
    return host in internal_hosts


def police_internal_links(
    content: str,
    *,
    allowed_urls: Iterable[str],
    internal_hosts: set[str],
) -> tuple[str, list[str]]:
    """
    Keep internal anchors only when they point at an allowed URL.

    A matching anchor gets its href replaced by the allowed URL verbatim, so every
    internal href left in the content is a member of `allowed_urls`. Any other
    internal anchor is unwrapped: the text stays, the link goes. External links
    are untouched. Relative links never match the (absolute) allow-list, so they
    are always unwrapped.

    Returns (content, removed_hrefs).
    """
    allowed: dict[str, str] = {}
    for u in allowed_urls:
        allowed.setdefault(link_key(u), u)

    soup = _soup(content)
    removed: list[str] = []
    for a in soup.find_all("a", href=True):
        href = a["href"].strip()
        if not _is_internal(href, internal_hosts):
            continue
        match = allowed.get(link_key(href)) if _host(href) else None
        if match is not None:
            a["href"] = match
            continue
        removed.append(href)
        a.unwrap()

    return str(soup), removed
