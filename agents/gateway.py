from __future__ import annotations

from typing import Any, Optional, Protocol, Union

import httpx

import config
from agents.errors import ProxyError
from schemas.generation import GatewayResponse, GenerationOptions, ImageGeneration

Payload = Union[str, list[dict[str, Any]]]


class Gateway(Protocol):
    """The only network boundary between stages and the generative model."""

    def invoke_model(self, model_id: str, payload: Payload, options: GenerationOptions) -> GatewayResponse:
        ...


def _error_message(resp: httpx.Response) -> tuple[str, Optional[str]]:
    try:
        data = resp.json()
    except ValueError:
        return (resp.reason_phrase or "Unknown error"), None
    if not isinstance(data, dict):
        return (resp.reason_phrase or "Unknown error"), None
    message = data.get("error") or data.get("message") or resp.reason_phrase or "Unknown error"
    details = data.get("details")
    return str(message), (str(details) if details else None)


class HttpProxyGateway:
    """
    Pass-through to the backend proxy (POST /api/gemini-proxy).

    Request body: {model, contents, config}. Success bodies are {text} or
    {imageBytes, success}; failures are {error, details?} with a non-2xx status.
    No retries and no caching: every failure surfaces as ProxyError.
    """

    def __init__(
        self,
        base_url: str = config.PROXY_BASE_URL,
        *,
        client: Optional[httpx.Client] = None,
        timeout: float = config.GATEWAY_TIMEOUT_SECONDS,
    ) -> None:
        self.url = base_url.rstrip("/") + config.PROXY_ENDPOINT
        self.timeout = timeout
        self._client = client or httpx.Client()

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HttpProxyGateway":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def invoke_model(self, model_id: str, payload: Payload, options: GenerationOptions) -> GatewayResponse:
        body = {"model": model_id, "contents": payload, "config": options.to_config()}
        try:
            resp = self._client.post(self.url, json=body, timeout=self.timeout)
        except httpx.TimeoutException as e:
            raise ProxyError(f"Backend proxy timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise ProxyError(f"Backend proxy unreachable: {e}") from e

        if resp.is_error:
            message, details = _error_message(resp)
            raise ProxyError(f"Backend proxy error: {message}", status=resp.status_code, details=details)

        try:
            data = resp.json()
        except ValueError as e:
            raise ProxyError("Backend proxy returned a non-JSON body", status=resp.status_code) from e
        if not isinstance(data, dict):
            raise ProxyError("Backend proxy returned an unexpected envelope", status=resp.status_code)

        if isinstance(options, ImageGeneration):
            image = data.get("imageBytes")
            if not image:
                raise ProxyError("no image produced", status=resp.status_code)
            return GatewayResponse(image_bytes=str(image))

        text = data.get("text")
        if not isinstance(text, str):
            raise ProxyError("Backend proxy response is missing 'text'", status=resp.status_code)
        return GatewayResponse(text=text)


def build_gateway(backend: Optional[str] = None) -> Gateway:
    name = (backend or config.GATEWAY_BACKEND).strip().lower()
    if name == "proxy":
        return HttpProxyGateway()
    if name == "openai":
        from agents.openai_gateway import OpenAIGateway

        return OpenAIGateway()
    raise ValueError(f"Unknown gateway backend: {name!r} (expected 'proxy' or 'openai')")
