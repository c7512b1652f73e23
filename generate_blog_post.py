from __future__ import annotations

import argparse
import sys
from datetime import date
from pathlib import Path

import config
from agents.errors import GenerationError, ProxyError, SchemaViolation
from agents.gateway import build_gateway
from app_logging.run_logger import RunLogger
from lib.post_export import export_post
from memory.client_store import ClientNotFound, ClientStore
from pipeline.blog_pipeline import BlogPipeline


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Generate a full blog post for one stored client.")
    ap.add_argument("client_id", help="Client id in the store")
    ap.add_argument("--store", type=Path, default=config.STORE_PATH, help="Client store JSON file")
    ap.add_argument("--out-dir", type=Path, default=config.POSTS_DIR, help="Where finished posts are written")
    ap.add_argument("--gateway", choices=["proxy", "openai"], default=None, help="Override CONTENT_GATEWAY")
    ap.add_argument(
        "--ignore-topic-history",
        action="store_true",
        help="Do not read or record used topics for this run",
    )
    return ap.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    print(">>> generate_blog_post.py started")

    store = ClientStore(args.store)
    try:
        client = store.load_profile(args.client_id)
    except ClientNotFound:
        print(f"❌ Unknown client: {args.client_id}")
        return 2

    run_logger = RunLogger.for_run(client_id=client.id, log_dir=config.RUN_LOG_DIR)
    pipeline = BlogPipeline(
        build_gateway(args.gateway),
        topic_history=None if args.ignore_topic_history else store,
    )

    try:
        post = pipeline.generate(client, lambda msg: print(f"  -> {msg}"), run_logger=run_logger)
    except ProxyError as e:
        print(f"❌ Run aborted (backend failure): {e}")
        return 1
    except SchemaViolation as e:
        print(f"❌ Run aborted (model broke its output contract): {e}")
        return 1
    except GenerationError as e:
        print(f"❌ Run aborted: {e}")
        return 1

    result = export_post(post, posts_dir=args.out_dir, date_str=date.today().isoformat())
    print(f"✅ Post saved to {result.post_dir}")
    print(f"   Run log: {run_logger.log_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
