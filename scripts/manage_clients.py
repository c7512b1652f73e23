from __future__ import annotations

import argparse
import json
from pathlib import Path

import config
from lib.client_roster import load_client_roster
from lib.sitemap import SitemapFetchError, fetch_sitemap_urls
from lib.validation.url_utils import is_valid_http_url, normalize_url
from memory.client_store import ClientNotFound, ClientStore


def _cmd_list(store: ClientStore, args: argparse.Namespace) -> int:
    clients = store.list_clients()
    if not clients:
        print("No clients stored.")
        return 0
    for c in clients:
        n_urls = len(store.sitemap_urls(c.id))
        n_topics = len(store.used_topics(c.id))
        print(f"- {c.id}: {c.name or '(unnamed)'} [{c.industry}] urls={n_urls} topics={n_topics}")
    return 0


def _cmd_show(store: ClientStore, args: argparse.Namespace) -> int:
    profile = store.load_profile(args.client_id)
    print(json.dumps(profile.to_dict(), indent=2, ensure_ascii=False))
    return 0


def _cmd_import(store: ClientStore, args: argparse.Namespace) -> int:
    clients = load_client_roster(Path(args.roster))
    for c in clients:
        created = store.save_client(c)
        print(f"{'✅ Created' if created else '🔁 Updated'} client {c.id}")
    return 0


def _cmd_delete(store: ClientStore, args: argparse.Namespace) -> int:
    store.delete_client(args.client_id)
    print(f"🗑️ Deleted client {args.client_id}")
    return 0


def _cmd_add_urls(store: ClientStore, args: argparse.Namespace) -> int:
    urls = []
    for raw in args.urls:
        if not is_valid_http_url(raw):
            print(f"⚠️ Skipping invalid URL: {raw}")
            continue
        urls.append(normalize_url(raw).normalized)
    added = store.add_sitemap_urls(args.client_id, urls)
    print(f"✅ Added {added} sitemap URL(s) for {args.client_id}")
    return 0


def _cmd_import_sitemap(store: ClientStore, args: argparse.Namespace) -> int:
    store.get_client(args.client_id)
    try:
        res = fetch_sitemap_urls(args.sitemap_url)
    except (SitemapFetchError, ValueError) as e:
        print(f"❌ {e}")
        return 1

    added = store.add_sitemap_urls(args.client_id, res.urls)
    print(f"✅ Read {len(res.sitemaps_read)} sitemap(s), found {len(res.urls)} URL(s), added {added} new")
    for err in res.errors:
        print(f"⚠️ {err}")
    return 0


def _cmd_topics(store: ClientStore, args: argparse.Namespace) -> int:
    store.get_client(args.client_id)
    if args.add:
        store.record_topic(args.client_id, args.add)
    for t in store.used_topics(args.client_id):
        print(f"- {t}")
    return 0


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Manage the client roster, sitemap URL pools and used topics")
    ap.add_argument("--store", type=Path, default=config.STORE_PATH, help="Client store JSON file")
    sub = ap.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List stored clients").set_defaults(fn=_cmd_list)

    p = sub.add_parser("show", help="Print one client profile (with sitemap URLs)")
    p.add_argument("client_id")
    p.set_defaults(fn=_cmd_show)

    p = sub.add_parser("import", help="Create/update clients from a YAML roster")
    p.add_argument("roster", help="YAML file: a list of clients or {clients: [...]}")
    p.set_defaults(fn=_cmd_import)

    p = sub.add_parser("delete", help="Delete a client with its URLs and topics")
    p.add_argument("client_id")
    p.set_defaults(fn=_cmd_delete)

    p = sub.add_parser("add-urls", help="Add sitemap URLs by hand")
    p.add_argument("client_id")
    p.add_argument("urls", nargs="+")
    p.set_defaults(fn=_cmd_add_urls)

    p = sub.add_parser("import-sitemap", help="Fetch a sitemap.xml and add its URLs")
    p.add_argument("client_id")
    p.add_argument("sitemap_url")
    p.set_defaults(fn=_cmd_import_sitemap)

    p = sub.add_parser("topics", help="Show (or add to) a client's used topics")
    p.add_argument("client_id")
    p.add_argument("--add", default=None, help="Record a topic as used")
    p.set_defaults(fn=_cmd_topics)

    args = ap.parse_args(argv)
    store = ClientStore(args.store)
    try:
        return args.fn(store, args)
    except ClientNotFound as e:
        print(f"❌ Unknown client: {e.args[0]}")
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
