"""The serverless function adapter."""

from __future__ import annotations

import json
import threading
import unittest
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

from script_studio.serverless import CORS_HEADERS, handler
from script_studio.services.ai_service import GeminiBackend, ScriptGenerator
from script_studio.services.db_service import MemoryScriptStore
from script_studio.services.script_service import ScriptRequestHandler

from support import SAMPLE_CONTENT, FakeBackend, make_generator, make_settings


class ServerlessHandlerTest(unittest.TestCase):
    def setUp(self) -> None:
        self.backend = FakeBackend()
        self.script_handler = ScriptRequestHandler(make_generator(self.backend), MemoryScriptStore())

    def _invoke(self, method: str, body=None, script_handler=None):
        event = {"httpMethod": method, "body": body}
        return handler(event, None, script_handler=script_handler or self.script_handler)

    def test_preflight(self) -> None:
        response = self._invoke("OPTIONS")

        self.assertEqual(response["statusCode"], 200)
        self.assertEqual(response["body"], "")
        self.assertEqual(response["headers"], CORS_HEADERS)

    def test_other_methods_not_allowed(self) -> None:
        response = self._invoke("GET")

        self.assertEqual(response["statusCode"], 405)
        self.assertEqual(response["headers"]["Access-Control-Allow-Methods"], "POST, OPTIONS")

    def test_body_required(self) -> None:
        expected = {
            "message": "Request body is required",
            "errors": [{"field": "body", "message": "Request body is required"}],
        }
        for body in (None, "", "{not json"):
            with self.subTest(body=body):
                response = self._invoke("POST", body)
                self.assertEqual(response["statusCode"], 400)
                self.assertEqual(json.loads(response["body"]), expected)
        self.assertEqual(self.backend.calls, [])

    def test_generates_script(self) -> None:
        response = self._invoke("POST", json.dumps({"topic": "Intermittent fasting basics"}))

        self.assertEqual(response["statusCode"], 200)
        body = json.loads(response["body"])
        self.assertTrue(body["id"])
        self.assertEqual(body["content"]["script"]["callToAction"],
                         "Subscribe for part two, where we cover fasting and exercise.")

    def test_validation_errors(self) -> None:
        response = self._invoke("POST", json.dumps({"topic": ""}))

        self.assertEqual(response["statusCode"], 400)
        self.assertEqual(json.loads(response["body"])["errors"][0]["field"], "topic")
        self.assertEqual(self.backend.calls, [])

    def test_missing_key(self) -> None:
        script_handler = ScriptRequestHandler(
            make_generator(self.backend, GEMINI_API_KEY=None), MemoryScriptStore()
        )

        response = self._invoke("POST", json.dumps({"topic": "Tides"}), script_handler)

        self.assertEqual(response["statusCode"], 401)


class _FakeGeminiHandler(BaseHTTPRequestHandler):
    """Answers every generateContent call with the sample package."""

    protocol_version = "HTTP/1.1"

    def do_POST(self):
        self.rfile.read(int(self.headers.get("Content-Length", 0)))
        self.server.request_count += 1
        payload = json.dumps({
            "candidates": [
                {
                    "content": {"role": "model", "parts": [{"text": json.dumps(SAMPLE_CONTENT)}]},
                    "finishReason": "STOP",
                }
            ]
        }).encode("utf-8")
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    def log_message(self, format, *args):
        pass


class WarmInstanceTest(unittest.TestCase):
    """One handler and one Gemini client serve several invocations."""

    def setUp(self) -> None:
        self.server = ThreadingHTTPServer(("127.0.0.1", 0), _FakeGeminiHandler)
        self.server.request_count = 0
        threading.Thread(target=self.server.serve_forever, daemon=True).start()
        self.addCleanup(self.server.server_close)
        self.addCleanup(self.server.shutdown)

    def test_repeated_invocations_reuse_the_gemini_client(self) -> None:
        base_url = f"http://127.0.0.1:{self.server.server_address[1]}/"
        backends = []

        def factory(api_key, model):
            backends.append(GeminiBackend(api_key, model, base_url=base_url))
            return backends[-1]

        script_handler = ScriptRequestHandler(
            ScriptGenerator(make_settings(), backend_factory=factory), MemoryScriptStore()
        )

        responses = [
            handler(
                {"httpMethod": "POST", "body": json.dumps({"topic": f"Topic {i}"})},
                None,
                script_handler=script_handler,
            )
            for i in range(3)
        ]

        self.assertEqual([r["statusCode"] for r in responses], [200, 200, 200], responses)
        self.assertEqual(len(backends), 1)
        self.assertEqual(self.server.request_count, 3)


if __name__ == "__main__":
    unittest.main()
