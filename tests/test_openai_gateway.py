from __future__ import annotations

import unittest
from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import openai

from agents.errors import ProxyError
from agents.openai_gateway import OpenAIGateway
from schemas.generation import ImageGeneration, TextGeneration, json_output


class TestOpenAIGateway(unittest.TestCase):
    def setUp(self) -> None:
        self.client = MagicMock()
        self.gateway = OpenAIGateway(client=self.client)

    def test_text_with_search_and_schema(self) -> None:
        self.client.responses.create.return_value = SimpleNamespace(output_text='{"faqs": []}')

        resp = self.gateway.invoke_model("gpt-test", "prompt", TextGeneration(web_search=True))
        kwargs = self.client.responses.create.call_args.kwargs
        self.assertEqual(kwargs["tools"], [{"type": "web_search"}])
        self.assertNotIn("text", kwargs)

        resp = self.gateway.invoke_model("gpt-test", "prompt", json_output({"type": "object"}))
        kwargs = self.client.responses.create.call_args.kwargs
        self.assertEqual(kwargs["text"]["format"]["type"], "json_schema")
        self.assertEqual(kwargs["text"]["format"]["schema"], {"type": "object"})
        self.assertNotIn("tools", kwargs)
        self.assertEqual(resp.text, '{"faqs": []}')

    def test_image_maps_aspect_ratio_and_format(self) -> None:
        self.client.images.generate.return_value = SimpleNamespace(data=[SimpleNamespace(b64_json="QUJD")])

        resp = self.gateway.invoke_model("gpt-image-1", "a lighthouse", ImageGeneration())
        kwargs = self.client.images.generate.call_args.kwargs
        self.assertEqual(kwargs["size"], "1536x1024")
        self.assertEqual(kwargs["output_format"], "jpeg")
        self.assertEqual(kwargs["n"], 1)
        self.assertEqual(resp.image_bytes, "QUJD")

    def test_image_without_data_is_proxy_error(self) -> None:
        self.client.images.generate.return_value = SimpleNamespace(data=[])
        with self.assertRaises(ProxyError):
            self.gateway.invoke_model("gpt-image-1", "a lighthouse", ImageGeneration())

    def test_status_error_is_proxy_error(self) -> None:
        request = httpx.Request("POST", "https://api.openai.com/v1/responses")
        response = httpx.Response(429, request=request)
        self.client.responses.create.side_effect = openai.APIStatusError("rate limited", response=response, body=None)

        with self.assertRaises(ProxyError) as ctx:
            self.gateway.invoke_model("gpt-test", "prompt", TextGeneration())
        self.assertEqual(ctx.exception.status, 429)

    def test_connection_error_is_proxy_error(self) -> None:
        request = httpx.Request("POST", "https://api.openai.com/v1/responses")
        self.client.responses.create.side_effect = openai.APIConnectionError(request=request)

        with self.assertRaises(ProxyError) as ctx:
            self.gateway.invoke_model("gpt-test", "prompt", TextGeneration())
        self.assertIsNone(ctx.exception.status)
