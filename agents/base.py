from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any, Type, TypeVar

from pydantic import BaseModel, ValidationError

from agents.errors import SchemaViolation
from agents.gateway import Gateway, Payload
from lib.html_content import strip_code_fences
from schemas.generation import GenerationOptions

M = TypeVar("M", bound=BaseModel)


class BaseAgent(ABC):
    """
    Base interface for every generation stage.

    Stages are stateless: everything they know comes from their arguments, and every
    model call goes through the injected gateway. Given a deterministic gateway a
    stage returns the same result for the same input.
    """

    name: str

    def __init__(self, gateway: Gateway, *, model: str) -> None:
        self.gateway = gateway
        self.model = model

    @abstractmethod
    def run(self, *args: Any, **kwargs: Any) -> Any:
        raise NotImplementedError

    def _text(self, payload: Payload, options: GenerationOptions) -> str:
        resp = self.gateway.invoke_model(self.model, payload, options)
        return (resp.text or "").strip()

    def _parse_structured(self, raw: str, model_cls: Type[M]) -> M:
        # Defensive cleanup: remove markdown code fences if the model adds them
        cleaned = strip_code_fences(raw)
        try:
            parsed = json.loads(cleaned)
        except json.JSONDecodeError as e:
            raise SchemaViolation(f"{self.name}: response is not valid JSON", raw_output=raw) from e

        try:
            return model_cls.model_validate(parsed)
        except ValidationError as e:
            raise SchemaViolation(
                f"{self.name}: response does not match the expected schema ({e.error_count()} errors)",
                raw_output=raw,
            ) from e
