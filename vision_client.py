"""Chat-completion adapter for a vision-capable Azure OpenAI deployment."""

from __future__ import annotations

import base64
import logging
from typing import Any, Optional

import requests

from errors import (
    AUTH_FAILED,
    CHAT_KEY_MISSING,
    CONFIG_MISSING,
    EMPTY_RESULT,
    NETWORK_ERROR,
    NO_RESPONSE,
    PROTOCOL_ERROR,
    TOKEN_BUDGET_EXHAUSTED,
    TOKENS_EXHAUSTED,
)
from models import AnswerOutcome
from prompts import DEFAULT_PERSONA

logger = logging.getLogger(__name__)

CHAT_API_VERSION = "2025-04-01-preview"
MAX_COMPLETION_TOKENS = 2048
REASONING_EFFORT = "low"
IMAGE_DETAIL = "low"


def build_user_content(transcript: str, image: Optional[bytes]) -> list[dict[str, Any]]:
    """Text part first, then the JPEG inlined as a data URL when present."""
    content: list[dict[str, Any]] = [{"type": "text", "text": transcript}]
    if image:
        encoded = base64.b64encode(image).decode("ascii")
        content.append(
            {
                "type": "image_url",
                "image_url": {
                    "url": f"data:image/jpeg;base64,{encoded}",
                    "detail": IMAGE_DETAIL,
                },
            }
        )
    return content


class AzureChatAnswerClient:
    def __init__(
        self,
        endpoint: str,
        api_key: str,
        deployment: str,
        persona: str = DEFAULT_PERSONA,
        api_version: str = CHAT_API_VERSION,
        max_completion_tokens: int = MAX_COMPLETION_TOKENS,
        reasoning_effort: str = REASONING_EFFORT,
        request_timeout_s: float = 60.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._endpoint = endpoint.rstrip("/")
        self._api_key = api_key
        self._deployment = deployment
        self._persona = persona
        self._api_version = api_version
        self._max_completion_tokens = max_completion_tokens
        self._reasoning_effort = reasoning_effort
        self._request_timeout_s = request_timeout_s
        self._session = session or requests.Session()

    @property
    def url(self) -> str:
        return f"{self._endpoint}/openai/deployments/{self._deployment}/chat/completions"

    def build_request(self, transcript: str, image: Optional[bytes]) -> dict[str, Any]:
        return {
            "messages": [
                {"role": "system", "content": self._persona},
                {"role": "user", "content": build_user_content(transcript, image)},
            ],
            "max_completion_tokens": self._max_completion_tokens,
            "reasoning_effort": self._reasoning_effort,
        }

    def answer(self, transcript: str, image: Optional[bytes]) -> AnswerOutcome:
        if not self._api_key:
            logger.error("Chat-completion API key is not configured")
            return AnswerOutcome.failure(CONFIG_MISSING, CHAT_KEY_MISSING)

        logger.info(
            "Requesting answer for %r (image: %s)",
            transcript,
            f"{len(image)} bytes" if image else "none",
        )
        try:
            response = self._session.post(
                self.url,
                params={"api-version": self._api_version},
                headers={"api-key": self._api_key, "Content-Type": "application/json"},
                json=self.build_request(transcript, image),
                timeout=self._request_timeout_s,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.error("Chat-completion request failed: %s", exc)
            return self._to_error_outcome(exc)

        try:
            payload = response.json()
        except ValueError:
            logger.error("Chat-completion response is not JSON: %s", response.text[:200])
            return AnswerOutcome.failure(PROTOCOL_ERROR, NO_RESPONSE)

        return self._parse(payload)

    def _parse(self, payload: Any) -> AnswerOutcome:
        choice: dict[str, Any] = {}
        if isinstance(payload, dict):
            choices = payload.get("choices")
            if isinstance(choices, list) and choices and isinstance(choices[0], dict):
                choice = choices[0]
        message = choice.get("message") or {}
        text = message.get("content") if isinstance(message, dict) else None
        finish_reason = choice.get("finish_reason")

        if isinstance(text, str) and text.strip():
            logger.info("Answer (%s): %s", finish_reason, text)
            return AnswerOutcome.success(text)

        usage = payload.get("usage") if isinstance(payload, dict) else None
        reasoning_tokens = None
        if isinstance(usage, dict):
            details = usage.get("completion_tokens_details") or {}
            reasoning_tokens = details.get("reasoning_tokens")
        logger.error(
            "No text in chat-completion response; finish_reason=%s reasoning_tokens=%s",
            finish_reason,
            reasoning_tokens,
        )
        if finish_reason == "length":
            return AnswerOutcome.failure(TOKEN_BUDGET_EXHAUSTED, TOKENS_EXHAUSTED)
        return AnswerOutcome.failure(EMPTY_RESULT, NO_RESPONSE)

    def _to_error_outcome(self, exc: requests.RequestException) -> AnswerOutcome:
        """Map a requests exception to a failure outcome, keeping its message."""
        status = getattr(exc.response, "status_code", None)
        code = AUTH_FAILED if status in (401, 403) else NETWORK_ERROR
        return AnswerOutcome.failure(code, str(exc))
