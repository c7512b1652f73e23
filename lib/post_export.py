from __future__ import annotations

import base64
import binascii
import html
import json
import re
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path

from PIL import Image, ImageOps

from schemas.blog import BlogPost

HERO_SIZE = (1600, 900)


@dataclass(frozen=True)
class ExportResult:
    post_dir: Path
    json_path: Path
    html_path: Path
    featured_path: Path
    hero_path: Path


def slugify(text: str) -> str:
    s = (text or "").lower().strip()
    s = s.replace("’", "").replace("'", "")
    s = re.sub(r"[^a-z0-9\s-]", "", s)
    s = re.sub(r"\s+", "-", s)
    s = re.sub(r"-+", "-", s)
    return s.strip("-")[:80].strip("-") or "post"


def _ensure_parent(p: Path) -> None:
    p.parent.mkdir(parents=True, exist_ok=True)


def _cover_resize(im: Image.Image, width: int, height: int) -> Image.Image:
    return ImageOps.fit(im, (int(width), int(height)), method=Image.Resampling.LANCZOS, centering=(0.5, 0.5))


def decode_image(image_base64: str) -> bytes:
    try:
        return base64.b64decode(image_base64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError("Featured image is not valid base64") from e


def render_post_html(post: BlogPost, *, featured_src: str) -> str:
    """Standalone page: H1 title, featured image, then the generated body."""
    title = html.escape(post.title)
    keywords = html.escape(", ".join(post.keywords), quote=True)
    return "\n".join([
        "<!DOCTYPE html>",
        '<html lang="en">',
        "<head>",
        '<meta charset="utf-8" />',
        f"<title>{title}</title>",
        f'<meta name="keywords" content="{keywords}" />',
        f'<meta name="description" content="{html.escape(post.angle, quote=True)}" />',
        "</head>",
        "<body>",
        "<article>",
        f"<h1>{title}</h1>",
        f'<img class="featured-image" src="{html.escape(featured_src, quote=True)}" alt="{title}" />',
        post.content,
        "</article>",
        "</body>",
        "</html>",
        "",
    ])


def export_post(post: BlogPost, *, posts_dir: Path, date_str: str) -> ExportResult:
    """
    Write a finished post into `<posts_dir>/<client>/<date>-<slug>/`:
      - post.json      (camelCase record, same shape the UI consumes)
      - featured.jpg   (decoded featured image)
      - hero.webp      (1600x900 cover crop)
      - post.html      (preview page)
    """
    post_dir = posts_dir / (post.client_id or "unassigned") / f"{date_str}-{slugify(post.title)}"
    json_path = post_dir / "post.json"
    html_path = post_dir / "post.html"
    featured_path = post_dir / "featured.jpg"
    hero_path = post_dir / "hero.webp"

    raw = decode_image(post.featured_image_base64)
    with Image.open(BytesIO(raw)) as im:
        im = im.convert("RGB")
        _ensure_parent(featured_path)
        im.save(str(featured_path), format="JPEG", quality=90)
        hero = _cover_resize(im, *HERO_SIZE)
        hero.save(str(hero_path), format="WEBP", quality=85, method=6)

    json_path.write_text(json.dumps(post.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
    html_path.write_text(render_post_html(post, featured_src=featured_path.name), encoding="utf-8")

    return ExportResult(
        post_dir=post_dir,
        json_path=json_path,
        html_path=html_path,
        featured_path=featured_path,
        hero_path=hero_path,
    )
