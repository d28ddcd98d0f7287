import asyncio
import json
import unittest
from unittest.mock import patch

import httpx
from tenacity import wait_none

from nebula_edge.inference_client import (
    DEFAULT_ENDPOINT,
    DEFAULT_MODEL,
    ENGINE_ERROR_TEXT,
    NO_RESPONSE_TEXT,
    InferenceClient,
    build_request_body,
    extract_content,
)


class _RecordingHandler:
    def __init__(self, *responses: object):
        self._responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        outcome = self._responses.pop(0) if len(self._responses) > 1 else self._responses[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _completion(content: object) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": content}}]})


def _client(handler: _RecordingHandler, **kwargs) -> InferenceClient:
    return InferenceClient(transport=httpx.MockTransport(handler), **kwargs)


class CompleteTests(unittest.TestCase):
    def test_returns_message_content(self) -> None:
        handler = _RecordingHandler(_completion("hi there"))

        result = asyncio.run(_client(handler).complete("hello", "sk-ant-test"))

        self.assertEqual("hi there", result)

    def test_request_shape(self) -> None:
        handler = _RecordingHandler(_completion("ok"))

        asyncio.run(_client(handler).complete("hello", "sk-ant-test"))

        self.assertEqual(1, len(handler.requests))
        request = handler.requests[0]
        self.assertEqual("POST", request.method)
        self.assertEqual(DEFAULT_ENDPOINT, str(request.url))
        self.assertEqual("Bearer sk-ant-test", request.headers["authorization"])
        self.assertEqual("application/json", request.headers["content-type"])
        self.assertEqual(
            {"model": DEFAULT_MODEL, "messages": [{"role": "user", "content": "hello"}]},
            json.loads(request.content),
        )

    def test_configured_endpoint_and_model(self) -> None:
        handler = _RecordingHandler(_completion("ok"))
        client = _client(handler, endpoint="https://example.test/v1/chat/completions", model="other-model")

        asyncio.run(client.complete("hello", "key"))

        request = handler.requests[0]
        self.assertEqual("https://example.test/v1/chat/completions", str(request.url))
        self.assertEqual("other-model", json.loads(request.content)["model"])

    def test_missing_choices_returns_fallback(self) -> None:
        handler = _RecordingHandler(httpx.Response(200, json={"id": "x"}))

        result = asyncio.run(_client(handler).complete("hello", "key"))

        self.assertEqual("No response received.", result)

    def test_empty_choices_returns_fallback(self) -> None:
        handler = _RecordingHandler(httpx.Response(200, json={"choices": []}))

        result = asyncio.run(_client(handler).complete("hello", "key"))

        self.assertEqual(NO_RESPONSE_TEXT, result)

    def test_empty_content_returns_fallback(self) -> None:
        handler = _RecordingHandler(_completion(""))

        result = asyncio.run(_client(handler).complete("hello", "key"))

        self.assertEqual(NO_RESPONSE_TEXT, result)

    def test_malformed_json_returns_sentinel(self) -> None:
        handler = _RecordingHandler(httpx.Response(200, content=b"<html>oops</html>"))

        result = asyncio.run(_client(handler).complete("hello", "key"))

        self.assertEqual(ENGINE_ERROR_TEXT, result)

    def test_http_error_status_returns_sentinel(self) -> None:
        handler = _RecordingHandler(httpx.Response(401, json={"error": {"message": "invalid api key"}}))

        result = asyncio.run(_client(handler).complete("hello", "bad-key"))

        self.assertEqual(ENGINE_ERROR_TEXT, result)

    def test_connection_error_returns_sentinel(self) -> None:
        handler = _RecordingHandler(httpx.ConnectError("network unreachable"))

        result = asyncio.run(_client(handler).complete("ping", "key"))

        self.assertEqual("ERROR: Engine failed to connect. Check your API key.", result)

    def test_timeout_returns_sentinel(self) -> None:
        handler = _RecordingHandler(httpx.ReadTimeout("timed out"))

        result = asyncio.run(_client(handler, timeout_seconds=0.5).complete("ping", "key"))

        self.assertEqual(ENGINE_ERROR_TEXT, result)

    def test_unexpected_exception_returns_sentinel(self) -> None:
        handler = _RecordingHandler(RuntimeError("boom"))

        result = asyncio.run(_client(handler).complete("ping", "key"))

        self.assertEqual(ENGINE_ERROR_TEXT, result)

    def test_no_retry_by_default(self) -> None:
        handler = _RecordingHandler(httpx.ConnectError("down"))

        asyncio.run(_client(handler).complete("ping", "key"))

        self.assertEqual(1, len(handler.requests))

    @patch("nebula_edge.inference_client.wait_exponential", return_value=wait_none())
    def test_retries_connection_errors_when_configured(self, _wait) -> None:
        handler = _RecordingHandler(httpx.ConnectError("down"), _completion("recovered"))

        result = asyncio.run(_client(handler, retry_attempts=3).complete("ping", "key"))

        self.assertEqual("recovered", result)
        self.assertEqual(2, len(handler.requests))

    @patch("nebula_edge.inference_client.wait_exponential", return_value=wait_none())
    def test_retries_exhausted_returns_sentinel(self, _wait) -> None:
        handler = _RecordingHandler(httpx.ConnectError("down"))

        result = asyncio.run(_client(handler, retry_attempts=2).complete("ping", "key"))

        self.assertEqual(ENGINE_ERROR_TEXT, result)
        self.assertEqual(2, len(handler.requests))


class ExtractContentTests(unittest.TestCase):
    def test_non_object_payload(self) -> None:
        self.assertEqual(NO_RESPONSE_TEXT, extract_content(["not", "an", "object"]))

    def test_missing_message(self) -> None:
        self.assertEqual(NO_RESPONSE_TEXT, extract_content({"choices": [{"index": 0}]}))

    def test_non_string_content(self) -> None:
        self.assertEqual(NO_RESPONSE_TEXT, extract_content({"choices": [{"message": {"content": None}}]}))

    def test_uses_first_choice(self) -> None:
        data = {"choices": [{"message": {"content": "first"}}, {"message": {"content": "second"}}]}
        self.assertEqual("first", extract_content(data))

    def test_build_request_body(self) -> None:
        self.assertEqual(
            {"model": "m", "messages": [{"role": "user", "content": "p"}]},
            build_request_body("m", "p"),
        )


if __name__ == "__main__":
    unittest.main()
