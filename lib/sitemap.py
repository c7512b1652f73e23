from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Optional

import httpx

from lib.validation.url_utils import normalize_url

DEFAULT_HEADERS = {
    "User-Agent": "ClientContentSitemapFetcher/1.0",
    "Accept": "application/xml,text/xml;q=0.9,*/*;q=0.5",
}


class SitemapFetchError(RuntimeError):
    pass


@dataclass(frozen=True)
class SitemapImportResult:
    urls: list[str]
    sitemaps_read: list[str]
    errors: list[str]


def _local(tag: str) -> str:
    # "{http://www.sitemaps.org/schemas/sitemap/0.9}loc" -> "loc"
    return tag.rsplit("}", 1)[-1].lower()


def parse_sitemap(xml_text: str) -> tuple[str, list[str]]:
    """
    Parse a sitemap document.

    Returns (kind, locs) where kind is "urlset" or "sitemapindex".
    """
    try:
        root = ET.fromstring(xml_text.strip().encode("utf-8"))
    except ET.ParseError as e:
        raise SitemapFetchError(f"Sitemap is not valid XML: {e}") from e

    kind = _local(root.tag)
    if kind not in ("urlset", "sitemapindex"):
        raise SitemapFetchError(f"Unexpected sitemap root element: <{kind}>")

    locs: list[str] = []
    for el in root.iter():
        if _local(el.tag) == "loc" and el.text and el.text.strip():
            locs.append(el.text.strip())
    return kind, locs


def _fetch(client: httpx.Client, url: str, timeout: float) -> str:
    try:
        r = client.get(url, timeout=timeout)
        r.raise_for_status()
    except httpx.HTTPError as e:
        raise SitemapFetchError(f"Failed to fetch sitemap from {url}: {e}") from e
    return r.text


def fetch_sitemap_urls(
    sitemap_url: str,
    *,
    client: Optional[httpx.Client] = None,
    timeout: float = 20.0,
    max_child_sitemaps: int = 50,
) -> SitemapImportResult:
    """
    Fetch a sitemap (or a sitemap index, one level deep) and return page URLs.

    The top-level fetch must succeed; failures on child sitemaps are collected in
    `errors` so one broken child does not lose the rest of the pool.
    """
    root_url = normalize_url(sitemap_url).normalized
    owns_client = client is None
    client = client or httpx.Client(follow_redirects=True, headers=DEFAULT_HEADERS)

    urls: list[str] = []
    seen: set[str] = set()
    read: list[str] = []
    errors: list[str] = []

    def _collect(locs: list[str]) -> None:
        for loc in locs:
            try:
                u = normalize_url(loc, base_url=root_url).normalized
            except ValueError:
                errors.append(f"skipped invalid url: {loc}")
                continue
            if u not in seen:
                seen.add(u)
                urls.append(u)

    try:
        kind, locs = parse_sitemap(_fetch(client, root_url, timeout))
        read.append(root_url)

        if kind == "urlset":
            _collect(locs)
        else:
            for child in locs[:max_child_sitemaps]:
                try:
                    child_kind, child_locs = parse_sitemap(_fetch(client, child, timeout))
                except SitemapFetchError as e:
                    errors.append(str(e))
                    continue
                read.append(child)
                if child_kind == "urlset":
                    _collect(child_locs)
                else:
                    errors.append(f"nested sitemap index ignored: {child}")
    finally:
        if owns_client:
            client.close()

    return SitemapImportResult(urls=urls, sitemaps_read=read, errors=errors)
