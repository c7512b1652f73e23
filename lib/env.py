from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv


def load_env(env_path: Path | None = None) -> None:
    """
    Load .env into the process environment.

    Existing environment variables win over file values. Missing files are a no-op.
    """
    candidates = [env_path] if env_path is not None else [Path(".env"), Path(".env") / ".env"]
    for p in candidates:
        if p.is_file():
            load_dotenv(dotenv_path=p, override=False)
            return

