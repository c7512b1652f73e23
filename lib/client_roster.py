from __future__ import annotations

from pathlib import Path
from typing import List

import yaml
from pydantic import Field

from schemas.base import SchemaBase
from schemas.client import ClientProfile


class ClientRosterFile(SchemaBase):
    clients: List[ClientProfile] = Field(default_factory=list)


def load_client_roster(path: Path) -> List[ClientProfile]:
    """
    Load client profiles from YAML. Accepts either a top-level list or a
    mapping with a `clients:` list. Keys may be snake_case or camelCase.
    """
    if not path.exists():
        raise FileNotFoundError(f"Client roster not found: {path}")

    raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if isinstance(raw, list):
        raw = {"clients": raw}
    return ClientRosterFile.model_validate(raw).clients
