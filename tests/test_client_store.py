from __future__ import annotations

import json
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory

from lib.client_roster import load_client_roster
from memory.client_store import ClientNotFound, ClientStore
from schemas.client import ClientProfile, WordPressCredentials


def _client(cid: str = "acme", **kw) -> ClientProfile:
    return ClientProfile(id=cid, name=cid.title(), industry="retail", website_url=f"https://{cid}.example", **kw)


class TestClientStore(unittest.TestCase):
    def test_create_update_and_list(self) -> None:
        with TemporaryDirectory() as td:
            store = ClientStore(Path(td) / "store.json")

            self.assertTrue(store.save_client(_client()))
            self.assertFalse(store.save_client(_client(brand_voice="bold")))
            self.assertTrue(store.save_client(_client("globex")))

            self.assertEqual(sorted(c.id for c in store.list_clients()), ["acme", "globex"])
            self.assertEqual(store.get_client("acme").brand_voice, "bold")

    def test_records_use_camel_case_and_keep_credentials_opaque(self) -> None:
        with TemporaryDirectory() as td:
            path = Path(td) / "store.json"
            store = ClientStore(path)
            creds = WordPressCredentials(url="https://acme.example/wp", username="u", app_password="p")
            store.save_client(_client(unique_value_prop="fast", wp=creds))

            raw = json.loads(path.read_text(encoding="utf-8"))
            rec = raw["clients"]["acme"]
            self.assertEqual(rec["uniqueValueProp"], "fast")
            self.assertEqual(rec["wp"]["appPassword"], "p")
            self.assertNotIn("sitemapUrls", rec)
            self.assertEqual(store.get_client("acme").wp, creds)

    def test_missing_client(self) -> None:
        with TemporaryDirectory() as td:
            store = ClientStore(Path(td) / "store.json")
            with self.assertRaises(ClientNotFound):
                store.get_client("nope")
            with self.assertRaises(ClientNotFound):
                store.delete_client("nope")
            with self.assertRaises(ClientNotFound):
                store.add_sitemap_urls("nope", ["https://x.example"])

    def test_sitemap_urls_dedupe_and_merge_into_profile(self) -> None:
        with TemporaryDirectory() as td:
            store = ClientStore(Path(td) / "store.json")
            store.save_client(_client(sitemap_urls=["https://acme.example/a"]))

            added = store.add_sitemap_urls("acme", ["https://acme.example/a", "https://acme.example/b", " "])
            self.assertEqual(added, 1)

            profile = store.load_profile("acme")
            self.assertEqual(profile.sitemap_urls, ["https://acme.example/a", "https://acme.example/b"])
            self.assertEqual(store.get_client("acme").sitemap_urls, [])

    def test_used_topics(self) -> None:
        with TemporaryDirectory() as td:
            store = ClientStore(Path(td) / "store.json")
            store.save_client(_client())
            store.record_topic("acme", "First")
            store.record_topic("acme", "  ")
            store.record_topic("acme", "Second")
            self.assertEqual(store.used_topics("acme"), ["First", "Second"])
            self.assertEqual(store.used_topics("globex"), [])

    def test_delete_cascades(self) -> None:
        with TemporaryDirectory() as td:
            store = ClientStore(Path(td) / "store.json")
            store.save_client(_client(sitemap_urls=["https://acme.example/a"]))
            store.record_topic("acme", "First")

            store.delete_client("acme")
            self.assertEqual(store.list_clients(), [])
            self.assertEqual(store.sitemap_urls("acme"), [])
            self.assertEqual(store.used_topics("acme"), [])

    def test_corrupted_file_self_heals(self) -> None:
        with TemporaryDirectory() as td:
            path = Path(td) / "store.json"
            path.write_text("{not json", encoding="utf-8")
            store = ClientStore(path)
            self.assertEqual(store.list_clients(), [])
            self.assertEqual(json.loads(path.read_text(encoding="utf-8"))["clients"], {})

    def test_undecodable_file_self_heals(self) -> None:
        with TemporaryDirectory() as td:
            path = Path(td) / "store.json"
            path.write_bytes(b"\xff\xfe\x00garbage")
            store = ClientStore(path)
            self.assertEqual(store.list_clients(), [])
            self.assertEqual(json.loads(path.read_text(encoding="utf-8"))["used_topics"], {})


class TestClientProfile(unittest.TestCase):
    def test_sitemap_urls_are_an_ordered_set(self) -> None:
        c = _client(sitemap_urls=["https://b.example", "https://a.example", "https://b.example", ""])
        self.assertEqual(c.sitemap_urls, ["https://b.example", "https://a.example"])

    def test_internal_hosts(self) -> None:
        c = ClientProfile(
            id="acme",
            industry="retail",
            website_url="https://www.acme.example",
            sitemap_urls=["https://shop.acme.example/x"],
        )
        self.assertEqual(c.internal_hosts(), {"acme.example", "shop.acme.example"})


class TestClientRoster(unittest.TestCase):
    def test_loads_list_or_mapping(self) -> None:
        with TemporaryDirectory() as td:
            listed = Path(td) / "list.yaml"
            listed.write_text(
                "- id: acme\n"
                "  industry: retail\n"
                "  uniqueValueProp: same-day delivery\n"
                "  sitemap_urls:\n"
                "    - https://acme.example/a\n",
                encoding="utf-8",
            )
            clients = load_client_roster(listed)
            self.assertEqual(clients[0].unique_value_prop, "same-day delivery")
            self.assertEqual(clients[0].sitemap_urls, ["https://acme.example/a"])

            mapping = Path(td) / "mapping.yaml"
            mapping.write_text("clients:\n  - id: globex\n    industry: energy\n", encoding="utf-8")
            self.assertEqual([c.id for c in load_client_roster(mapping)], ["globex"])

    def test_missing_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_client_roster(Path("does/not/exist.yaml"))
