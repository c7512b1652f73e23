from __future__ import annotations

import json
import re
import threading
import unittest

from agents.content_agent import NO_SITEMAP_MARKER, ContentAgent
from agents.errors import ProxyError, SchemaViolation
from agents.faq_agent import FaqAgent
from agents.image_agent import ImageGenerationAgent
from lib.html_content import extract_links
from schemas.client import ClientProfile
from schemas.generation import GatewayResponse, ImageGeneration

FAQ_JSON = json.dumps({"faqs": [{"question": f"Q{i}?", "answer": f"A{i}."} for i in range(3)]})


class _ContentGateway:
    """
    Text calls: FAQ requests (schema with 'faqs') get FAQ_JSON, everything else gets `body`.
    Image calls: fail for prompts starting with any seed in `fail_for`, else return `image`.
    """

    def __init__(self, body: str, *, image: str = "SU1H", fail_for: tuple[str, ...] = (), faq_raw: str = FAQ_JSON):
        self.body = body
        self.image = image
        self.fail_for = fail_for
        self.faq_raw = faq_raw
        self.prompts: list[str] = []
        self.image_prompts: list[str] = []
        self._lock = threading.Lock()

    def invoke_model(self, model_id, payload, options):
        if isinstance(options, ImageGeneration):
            with self._lock:
                self.image_prompts.append(payload)
            if any(payload.startswith(seed) for seed in self.fail_for):
                raise ProxyError("image backend failed", status=500)
            return GatewayResponse(image_bytes=self.image)

        with self._lock:
            self.prompts.append(payload)
        schema = options.response_schema or {}
        if "faqs" in schema.get("properties", {}):
            return GatewayResponse(text=self.faq_raw)
        return GatewayResponse(text=self.body)


def _client(sitemap: list[str] | None = None) -> ClientProfile:
    return ClientProfile(
        id="acme",
        name="Acme",
        industry="retail",
        website_url="https://www.acme.example",
        brand_voice="friendly",
        content_strategy="educate",
        unique_value_prop="same-day delivery",
        sitemap_urls=sitemap if sitemap is not None else ["https://acme.example/delivery", "https://acme.example/blog/returns"],
    )


def _agent(gw: _ContentGateway, **kwargs) -> ContentAgent:
    return ContentAgent(
        gw,
        model="m",
        image_agent=ImageGenerationAgent(gw, model="imagen"),
        faq_agent=FaqAgent(gw, model="m"),
        **kwargs,
    )


def _img_count(html: str) -> int:
    return len(re.findall(r"<img\b", html))


BODY = "\n".join([
    "<h2>Intro</h2>",
    "<p>Opening.</p>",
    "<h3>Why it matters</h3>",
    "<p>Details.</p>",
    "<h2>Conclusion</h2>",
    "<p>Closing.</p>",
])


class TestContentAgent(unittest.TestCase):
    def test_images_follow_first_two_headings_and_faq_is_last(self) -> None:
        gw = _ContentGateway(BODY)
        result = _agent(gw).generate("T", "outline", _client())
        html = result.content

        self.assertEqual(result.inline_images, 2)
        self.assertEqual(_img_count(html), 2)
        self.assertIn('<h2>Intro</h2>\n<img src="data:image/jpeg;base64,SU1H" alt="Intro" />', html)
        self.assertIn('<h3>Why it matters</h3>\n<img src="data:image/jpeg;base64,SU1H" alt="Why it matters" />', html)
        self.assertNotIn('<h2>Conclusion</h2>\n<img', html)

        self.assertEqual(html.count('<div class="faq-section">'), 1)
        self.assertTrue(html.rstrip().endswith("</script>"))
        self.assertGreater(html.index("faq-section"), html.index("Closing."))

    def test_code_fence_and_h1_are_removed(self) -> None:
        gw = _ContentGateway("```html\n<h1>T</h1>\n" + BODY + "\n```")
        html = _agent(gw).run("T", "outline", _client())

        self.assertNotIn("```", html)
        self.assertNotRegex(html, r"(?i)<h1\b")
        self.assertTrue(html.startswith("<h2>Intro</h2>"))

    def test_failed_inline_image_is_skipped_not_fatal(self) -> None:
        gw = _ContentGateway(BODY, fail_for=("Intro",))
        result = _agent(gw).generate("T", "outline", _client())

        self.assertEqual(len(gw.image_prompts), 2)
        self.assertEqual(result.inline_images, 1)
        self.assertEqual(_img_count(result.content), 1)
        self.assertNotIn("<h2>Intro</h2>\n<img", result.content)
        self.assertIn("<h3>Why it matters</h3>\n<img", result.content)
        self.assertEqual([f.heading for f in result.image_failures], ["Intro"])
        self.assertIsInstance(result.image_failures[0].cause, ProxyError)

    def test_all_inline_images_failing_still_produces_content(self) -> None:
        gw = _ContentGateway(BODY, fail_for=("Intro", "Why it matters"))
        result = _agent(gw).generate("T", "outline", _client())
        self.assertEqual(result.inline_images, 0)
        self.assertIn("faq-section", result.content)

    def test_inline_image_cap_is_configurable(self) -> None:
        gw = _ContentGateway(BODY)
        result = _agent(gw, max_inline_images=0).generate("T", "outline", _client())
        self.assertEqual(result.inline_images, 0)
        self.assertEqual(gw.image_prompts, [])

    def test_content_without_headings_gets_no_images(self) -> None:
        gw = _ContentGateway("<p>Just a paragraph.</p>")
        result = _agent(gw).generate("T", "outline", _client())
        self.assertEqual(result.inline_images, 0)
        self.assertEqual(gw.image_prompts, [])

    def test_faq_schema_violation_propagates(self) -> None:
        gw = _ContentGateway(BODY, faq_raw="{broken")
        with self.assertRaises(SchemaViolation):
            _agent(gw).run("T", "outline", _client())

    def test_internal_links_are_limited_to_sitemap(self) -> None:
        body = (
            '<h2>Intro</h2><p>See <a href="https://acme.example/delivery">delivery</a>, '
            '<a href="https://www.acme.example/invented-page">a made-up page</a>, '
            '<a href="/relative">a relative link</a> and '
            '<a href="https://en.wikipedia.org/wiki/Retail">Wikipedia</a>.</p>'
        )
        client = _client()
        result = _agent(_ContentGateway(body)).generate("T", "outline", client)

        links = extract_links(result.content)
        internal = [u for u in links if "acme.example" in u or u.startswith("/")]
        self.assertEqual(internal, ["https://acme.example/delivery"])
        self.assertTrue(set(internal) <= set(client.sitemap_urls))
        self.assertIn("https://en.wikipedia.org/wiki/Retail", links)
        self.assertIn("a made-up page", result.content)
        self.assertEqual(result.removed_links, ["https://www.acme.example/invented-page", "/relative"])

    def test_prompt_lists_sitemap_urls(self) -> None:
        gw = _ContentGateway(BODY)
        _agent(gw).run("T", "outline", _client())
        content_prompt = gw.prompts[0]
        self.assertIn("https://acme.example/delivery", content_prompt)
        self.assertIn("between 4 and 8 internal HTML hyperlinks", content_prompt)
        self.assertNotIn(NO_SITEMAP_MARKER, content_prompt)

    def test_empty_sitemap_uses_marker_and_strips_internal_links(self) -> None:
        body = '<h2>Intro</h2><p><a href="https://acme.example/anything">Acme</a></p>'
        gw = _ContentGateway(body)
        result = _agent(gw).generate("T", "outline", _client(sitemap=[]))

        self.assertIn(NO_SITEMAP_MARKER, gw.prompts[0])
        self.assertEqual(extract_links(result.content), [])
        self.assertIn("Acme", result.content)

    def test_unexpected_image_error_is_absorbed(self) -> None:
        class _TimeoutGateway(_ContentGateway):
            def invoke_model(self, model_id, payload, options):
                if isinstance(options, ImageGeneration) and payload.startswith("Intro"):
                    raise TimeoutError("gateway wrapper timed out")
                return super().invoke_model(model_id, payload, options)

        result = _agent(_TimeoutGateway(BODY)).generate("T", "outline", _client())

        self.assertEqual(result.inline_images, 1)
        self.assertEqual([f.heading for f in result.image_failures], ["Intro"])
        self.assertIsInstance(result.image_failures[0].cause, TimeoutError)
        self.assertIn("faq-section", result.content)

    def test_inline_images_never_exceed_two(self) -> None:
        body = "<h2>One</h2><p>a</p><h2>Two</h2><p>b</p><h2>Three</h2><p>c</p>"
        gw = _ContentGateway(body)
        agent = _agent(gw, max_inline_images=3, image_workers=5)

        result = agent.generate("T", "outline", _client())

        self.assertEqual(agent.max_inline_images, 2)
        self.assertEqual(agent.image_workers, 2)
        self.assertEqual(result.inline_images, 2)
        self.assertEqual(_img_count(result.content), 2)
        self.assertEqual(len(gw.image_prompts), 2)

    def test_internal_links_in_content_are_sitemap_urls_verbatim(self) -> None:
        body = (
            '<h2>Intro</h2><p><a href="http://www.acme.example/delivery/">delivery</a> and '
            "<a href=https://acme.example/invented>an unquoted guess</a></p>"
        )
        client = _client()
        result = _agent(_ContentGateway(body)).generate("T", "outline", client)

        internal = [u for u in extract_links(result.content) if "acme.example" in u]
        self.assertEqual(internal, ["https://acme.example/delivery"])
        self.assertTrue(set(internal) <= set(client.sitemap_urls))
        self.assertIn("an unquoted guess", result.content)
