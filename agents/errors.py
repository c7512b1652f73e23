from __future__ import annotations

from typing import Optional


class GenerationError(Exception):
    """Base for every failure raised while generating a post."""


class ProxyError(GenerationError):
    """Network/backend failure or a malformed backend envelope."""

    def __init__(self, message: str, *, status: Optional[int] = None, details: Optional[str] = None) -> None:
        self.status = status
        self.details = details
        parts = [message]
        if status is not None:
            parts.insert(0, f"[{status}]")
        if details:
            parts.append(f"- {details}")
        super().__init__(" ".join(parts))


class SchemaViolation(GenerationError):
    """The model's output did not honor the structured contract it was asked for."""

    def __init__(self, message: str, *, raw_output: str = "") -> None:
        self.raw_output = raw_output
        super().__init__(message)


class PartialStageFailure(GenerationError):
    """One inline image failed. Absorbed by the content stage."""

    def __init__(self, heading: str, cause: Exception) -> None:
        self.heading = heading
        self.cause = cause
        super().__init__(f"inline image failed for heading {heading!r}: {cause}")
