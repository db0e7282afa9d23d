"""Speech-to-text adapter for an Azure OpenAI Whisper deployment.

The WAV buffer from the capture gateway is uploaded as a multipart ``file``
field; nothing touches disk. One request per run, no retries.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from errors import (
    AUTH_FAILED,
    CONFIG_MISSING,
    EMPTY_RESULT,
    NETWORK_ERROR,
    NO_TRANSCRIPTION,
    PROTOCOL_ERROR,
    STT_CREDENTIALS_MISSING,
)
from models import TranscriptionOutcome

logger = logging.getLogger(__name__)

STT_API_VERSION = "2024-06-01"
TEXT_FIELDS = ("text", "transcription")


class AzureWhisperTranscriber:
    def __init__(
        self,
        endpoint: str,
        api_key: str,
        deployment: str,
        api_version: str = STT_API_VERSION,
        request_timeout_s: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._endpoint = endpoint.rstrip("/")
        self._api_key = api_key
        self._deployment = deployment
        self._api_version = api_version
        self._request_timeout_s = request_timeout_s
        self._session = session or requests.Session()

    @property
    def url(self) -> str:
        return f"{self._endpoint}/openai/deployments/{self._deployment}/audio/transcriptions"

    def transcribe(self, audio: bytes) -> TranscriptionOutcome:
        if not (self._endpoint and self._api_key and self._deployment):
            logger.error("Speech-to-text credentials are not configured")
            return TranscriptionOutcome.failure(CONFIG_MISSING, STT_CREDENTIALS_MISSING)

        logger.debug("Uploading %d bytes of audio to %s", len(audio), self.url)
        try:
            response = self._session.post(
                self.url,
                params={"api-version": self._api_version},
                headers={"api-key": self._api_key},
                files={"file": ("audio.wav", audio, "audio/wav")},
                timeout=self._request_timeout_s,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.error("Transcription request failed: %s", exc)
            return self._to_error_outcome(exc)

        try:
            payload = response.json()
        except ValueError:
            logger.error("Transcription response is not JSON: %s", response.text[:200])
            return TranscriptionOutcome.failure(PROTOCOL_ERROR, "Transcription response is not JSON")

        text = self._extract_text(payload)
        if not text:
            logger.error("No transcription text in response")
            return TranscriptionOutcome.failure(EMPTY_RESULT, NO_TRANSCRIPTION)

        logger.info("Transcription: %s", text)
        return TranscriptionOutcome.success(text)

    def _extract_text(self, payload: Any) -> str:
        if not isinstance(payload, dict):
            return ""
        for field in TEXT_FIELDS:
            value = payload.get(field)
            if isinstance(value, str) and value.strip():
                return value
        return ""

    def _to_error_outcome(self, exc: requests.RequestException) -> TranscriptionOutcome:
        """Map a requests exception to a failure outcome, keeping its message."""
        status = getattr(exc.response, "status_code", None)
        code = AUTH_FAILED if status in (401, 403) else NETWORK_ERROR
        return TranscriptionOutcome.failure(code, str(exc))
