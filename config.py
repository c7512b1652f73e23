"""Runtime settings for the content generator, read from the environment (and .env)."""

import os
from pathlib import Path

from lib.env import load_env

load_env()

# ── Gateway ────────────────────────────────────────────────────────────────
# "proxy" talks to the backend proxy endpoint; "openai" calls the OpenAI API directly.
GATEWAY_BACKEND = os.getenv("CONTENT_GATEWAY", "proxy").strip().lower()
PROXY_BASE_URL = os.getenv("CONTENT_PROXY_URL", "http://localhost:3001").rstrip("/")
PROXY_ENDPOINT = "/api/gemini-proxy"
GATEWAY_TIMEOUT_SECONDS = float(os.getenv("CONTENT_GATEWAY_TIMEOUT", "120"))

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")

# ── Models ─────────────────────────────────────────────────────────────────
_DEFAULT_TEXT_MODEL = "gpt-5.2" if GATEWAY_BACKEND == "openai" else "gemini-2.5-flash"
_DEFAULT_IMAGE_MODEL = "gpt-image-1" if GATEWAY_BACKEND == "openai" else "imagen-3.0-generate-002"

TEXT_MODEL = os.getenv("CONTENT_TEXT_MODEL", _DEFAULT_TEXT_MODEL)
IMAGE_MODEL = os.getenv("CONTENT_IMAGE_MODEL", _DEFAULT_IMAGE_MODEL)

# ── Generation ─────────────────────────────────────────────────────────────
# Hard ceilings; the env var can only lower the image count.
INLINE_IMAGE_LIMIT = 2
MAX_INLINE_IMAGES = max(0, min(INLINE_IMAGE_LIMIT, int(os.getenv("CONTENT_MAX_INLINE_IMAGES", "2"))))
INLINE_IMAGE_WORKERS = INLINE_IMAGE_LIMIT
FAQ_CONTENT_CHARS = 2000

# ── Storage / output ───────────────────────────────────────────────────────
STORE_PATH = Path(os.getenv("CLIENT_STORE_PATH", "memory/client_store.json"))
OUTPUT_DIR = Path(os.getenv("CONTENT_OUTPUT_DIR", "output"))
POSTS_DIR = OUTPUT_DIR / "posts"
RUN_LOG_DIR = OUTPUT_DIR / "run_logs"
