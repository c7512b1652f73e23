import json
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional


def utc_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def new_run_id() -> str:
    return f"{datetime.now(timezone.utc).strftime('%Y%m%dT%H%M%SZ')}-{uuid.uuid4().hex[:8]}"


@dataclass
class RunLogger:
    """
    Append-only JSONL run logger.

    One JSON object per line: a start/end/error event per pipeline stage.
    Progress messages are not logged here; they belong to the caller's sink.
    """
    run_id: str
    client_id: str
    log_path: Path
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @classmethod
    def for_run(cls, *, client_id: str, log_dir: Path, run_id: Optional[str] = None) -> "RunLogger":
        rid = run_id or new_run_id()
        return cls(run_id=rid, client_id=client_id, log_path=log_dir / f"{rid}.jsonl")

    def _write(self, payload: dict[str, Any]) -> None:
        line = json.dumps(payload, ensure_ascii=False, default=str) + "\n"
        with self._lock:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            with self.log_path.open("a", encoding="utf-8") as f:
                f.write(line)

    def _event(self, stage: str, event: str, status: str, **extra: Any) -> dict[str, Any]:
        return {
            "ts": utc_iso(),
            "run_id": self.run_id,
            "client_id": self.client_id,
            "stage": stage,
            "event": event,
            "status": status,
            **extra,
        }

    def start(self, stage: str, input: Any) -> None:
        self._write(self._event(stage, "start", "ok", input=input))

    def end(self, stage: str, output: Any, metrics: Optional[dict[str, Any]] = None) -> None:
        self._write(self._event(stage, "end", "ok", output=output, metrics=metrics or {}))

    def error(self, stage: str, input: Any, err: Exception) -> None:
        self._write(self._event(
            stage,
            "error",
            "error",
            input=input,
            error={
                "type": err.__class__.__name__,
                "message": str(err),
            },
        ))

    def read_events(self) -> list[dict[str, Any]]:
        if not self.log_path.exists():
            return []
        with self.log_path.open("r", encoding="utf-8") as f:
            return [json.loads(line) for line in f if line.strip()]
