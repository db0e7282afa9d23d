"""Shared error codes and user-facing messages."""

from __future__ import annotations

CONFIG_MISSING = "CONFIG_MISSING"
NETWORK_ERROR = "NETWORK_ERROR"
AUTH_FAILED = "AUTH_FAILED"
EMPTY_RESULT = "EMPTY_RESULT"
TOKEN_BUDGET_EXHAUSTED = "TOKEN_BUDGET_EXHAUSTED"
PROTOCOL_ERROR = "PROTOCOL_ERROR"

STT_CREDENTIALS_MISSING = "Azure OpenAI credentials not configured"
CHAT_KEY_MISSING = "Azure OpenAI API key not configured"
NO_TRANSCRIPTION = "No transcription returned"
NO_RESPONSE = "No response from AI"
TOKENS_EXHAUSTED = "AI used all tokens on reasoning, no output generated. Try again."
