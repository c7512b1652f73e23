from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Iterable, List

import config
from schemas.client import ClientProfile


class ClientNotFound(KeyError):
    pass


def _empty() -> dict[str, Any]:
    return {"clients": {}, "sitemap_urls": {}, "used_topics": {}}


class ClientStore:
    """
    JSON-file store for clients, their sitemap URL pools and used topics.

    Client records are keyed by id, next to per-client lists for sitemap URLs
    and used topics. Client records never embed sitemap URLs; `load_profile`
    merges them for a generation run.
    """

    def __init__(self, path: Path = config.STORE_PATH):
        self.path = Path(path)
        self._lock = threading.RLock()
        self._ensure_file_exists()

    def _ensure_file_exists(self):
        if not self.path.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._save(_empty())

    def _load(self) -> dict[str, Any]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            if isinstance(data, dict):
                base = _empty()
                for key in base:
                    if isinstance(data.get(key), dict):
                        base[key] = data[key]
                return base
        except (OSError, ValueError):
            pass

        # Self-heal if corrupted
        data = _empty()
        self._save(data)
        return data

    def _save(self, data: dict[str, Any]):
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        tmp.replace(self.path)

    # -------------------------
    # Clients
    # -------------------------

    def list_clients(self) -> List[ClientProfile]:
        with self._lock:
            data = self._load()
        return [ClientProfile.model_validate(rec) for rec in data["clients"].values()]

    def get_client(self, client_id: str) -> ClientProfile:
        with self._lock:
            rec = self._load()["clients"].get(client_id)
        if rec is None:
            raise ClientNotFound(client_id)
        return ClientProfile.model_validate(rec)

    def save_client(self, client: ClientProfile) -> bool:
        """Create or update a client. Returns True when the client is new."""
        record = client.model_copy(update={"sitemap_urls": []}).to_dict()
        record.pop("sitemapUrls", None)
        with self._lock:
            data = self._load()
            created = client.id not in data["clients"]
            data["clients"][client.id] = record
            if client.sitemap_urls:
                data["sitemap_urls"][client.id] = _merge(data["sitemap_urls"].get(client.id, []), client.sitemap_urls)
            self._save(data)
        return created

    def delete_client(self, client_id: str) -> None:
        with self._lock:
            data = self._load()
            if client_id not in data["clients"]:
                raise ClientNotFound(client_id)
            del data["clients"][client_id]
            data["sitemap_urls"].pop(client_id, None)
            data["used_topics"].pop(client_id, None)
            self._save(data)

    def load_profile(self, client_id: str) -> ClientProfile:
        client = self.get_client(client_id)
        return client.model_copy(update={"sitemap_urls": self.sitemap_urls(client_id)})

    # -------------------------
    # Sitemap URLs
    # -------------------------

    def sitemap_urls(self, client_id: str) -> List[str]:
        with self._lock:
            return list(self._load()["sitemap_urls"].get(client_id, []))

    def add_sitemap_urls(self, client_id: str, urls: Iterable[str]) -> int:
        """Append URLs not already stored. Returns how many were added."""
        with self._lock:
            data = self._load()
            if client_id not in data["clients"]:
                raise ClientNotFound(client_id)
            existing = data["sitemap_urls"].get(client_id, [])
            merged = _merge(existing, urls)
            data["sitemap_urls"][client_id] = merged
            self._save(data)
        return len(merged) - len(existing)

    # -------------------------
    # Used topics
    # -------------------------

    def used_topics(self, client_id: str) -> List[str]:
        with self._lock:
            return list(self._load()["used_topics"].get(client_id, []))

    def record_topic(self, client_id: str, topic: str) -> None:
        topic = (topic or "").strip()
        if not topic:
            return
        with self._lock:
            data = self._load()
            data["used_topics"].setdefault(client_id, []).append(topic)
            self._save(data)


def _merge(existing: Iterable[str], new: Iterable[str]) -> List[str]:
    out = list(existing)
    seen = set(out)
    for u in new:
        s = str(u or "").strip()
        if s and s not in seen:
            seen.add(s)
            out.append(s)
    return out
