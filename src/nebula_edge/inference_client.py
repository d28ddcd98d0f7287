from __future__ import annotations

import httpx
from loguru import logger
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

DEFAULT_ENDPOINT = "https://inference.nebulablock.com/v1/chat/completions"
DEFAULT_MODEL = "claude-3-opus"

NO_RESPONSE_TEXT = "No response received."
ENGINE_ERROR_TEXT = "ERROR: Engine failed to connect. Check your API key."


def _on_retry(retry_state):
    attempt = retry_state.attempt_number
    wait = retry_state.next_action.sleep if retry_state.next_action else 0
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    reason = type(exc).__name__ if exc else "Unknown"
    logger.warning(f"{reason}. Retrying in {wait:.0f}s (attempt {attempt})...")


def _retry_kwargs(max_attempts: int) -> dict:
    return {
        "retry": retry_if_exception_type((httpx.ConnectError, httpx.TimeoutException)),
        "wait": wait_exponential(multiplier=1, min=1, max=30),
        "stop": stop_after_attempt(max(1, max_attempts)),
        "before_sleep": _on_retry,
        "reraise": True,
    }


def build_request_body(model: str, prompt: str) -> dict:
    return {
        "model": model,
        "messages": [{"role": "user", "content": prompt}],
    }


def extract_content(data: object) -> str:
    """Pull ``choices[0].message.content`` out of a decoded response.

    Any missing or empty link in that path yields ``NO_RESPONSE_TEXT``.
    """
    if not isinstance(data, dict):
        return NO_RESPONSE_TEXT
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return NO_RESPONSE_TEXT
    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else None
    content = message.get("content") if isinstance(message, dict) else None
    if isinstance(content, str) and content:
        return content
    return NO_RESPONSE_TEXT


class InferenceClient:
    """One request/response cycle against a chat-completions endpoint.

    ``complete`` never raises: every failure comes back as ``ENGINE_ERROR_TEXT``
    so callers can treat each outcome as assistant content.
    """

    def __init__(
        self,
        *,
        endpoint: str = DEFAULT_ENDPOINT,
        model: str = DEFAULT_MODEL,
        timeout_seconds: float | None = None,
        retry_attempts: int = 1,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._endpoint = endpoint
        self._model = model
        self._timeout_seconds = timeout_seconds
        self._retry_attempts = retry_attempts
        self._transport = transport

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def model(self) -> str:
        return self._model

    async def complete(self, prompt: str, credential: str) -> str:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {credential}",
        }
        body = build_request_body(self._model, prompt)

        try:
            logger.debug(f"API request: endpoint={self._endpoint}, model={self._model}, prompt_chars={len(prompt)}")
            post = retry(**_retry_kwargs(self._retry_attempts))(self._post)
            response = await post(body, headers)

            if not response.is_success:
                logger.warning(f"Inference endpoint returned HTTP {response.status_code}")
                return ENGINE_ERROR_TEXT

            data = response.json()
        except Exception as ex:
            logger.warning(f"Inference request failed: {type(ex).__name__}: {ex}")
            return ENGINE_ERROR_TEXT

        content = extract_content(data)
        logger.debug(f"API response: status={response.status_code}, content_chars={len(content)}")
        return content

    async def _post(self, body: dict, headers: dict) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self._timeout_seconds, transport=self._transport) as client:
            return await client.post(self._endpoint, json=body, headers=headers)
