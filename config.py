"""Environment-backed config store with a JSON preferences file.

Credentials come from the process environment, optionally seeded from a
``.env`` file via python-dotenv. Non-secret preferences (hotkey, debug
directory) live in a small JSON file and can be changed from the tray menu.
Environment values always win over the JSON file.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

STT_ENDPOINT_VAR = "AZURE_STT_OPENAI_ENDPOINT"
STT_API_KEY_VAR = "AZURE_STT_OPENAI_API_KEY"
STT_DEPLOYMENT_VAR = "AZURE_STT_OPENAI_DEPLOYMENT_NAME"
CHAT_API_KEY_VAR = "AZURE_OPENAI_API_KEY"
CHAT_API_KEY_LEGACY_VAR = "azure_key"
CHAT_ENDPOINT_VAR = "AZURE_OPENAI_ENDPOINT"
CHAT_DEPLOYMENT_VAR = "AZURE_OPENAI_DEPLOYMENT_NAME"
SAVE_DEBUG_FILES_VAR = "SAVE_DEBUG_FILES"
HOTKEY_VAR = "MIRROR_AI_HOTKEY"

DEFAULT_CHAT_ENDPOINT = "https://synthia-v2.openai.azure.com"
DEFAULT_CHAT_DEPLOYMENT = "gpt-5-mini"
DEFAULT_HOTKEY = "Key.f9"


class EnvConfigStore:
    def __init__(
        self,
        path: Path | None = None,
        env_path: Path | None = None,
    ) -> None:
        self._path = path or Path.home() / ".config" / "mirror_ai" / "config.json"
        self._path.parent.mkdir(parents=True, exist_ok=True)
        if env_path is not None:
            load_dotenv(dotenv_path=env_path, override=False)
        else:
            load_dotenv(override=False)

    # Credentials (environment only)

    def get_stt_endpoint(self) -> str:
        return self._env(STT_ENDPOINT_VAR).rstrip("/")

    def get_stt_api_key(self) -> str:
        return self._env(STT_API_KEY_VAR)

    def get_stt_deployment(self) -> str:
        return self._env(STT_DEPLOYMENT_VAR)

    def get_chat_api_key(self) -> str:
        return self._env(CHAT_API_KEY_VAR) or self._env(CHAT_API_KEY_LEGACY_VAR)

    def get_chat_endpoint(self) -> str:
        return (self._env(CHAT_ENDPOINT_VAR) or DEFAULT_CHAT_ENDPOINT).rstrip("/")

    def get_chat_deployment(self) -> str:
        return self._env(CHAT_DEPLOYMENT_VAR) or DEFAULT_CHAT_DEPLOYMENT

    def missing_credentials(self) -> list[str]:
        """Names of required variables that are unset or blank."""
        required = {
            STT_ENDPOINT_VAR: self.get_stt_endpoint(),
            STT_API_KEY_VAR: self.get_stt_api_key(),
            STT_DEPLOYMENT_VAR: self.get_stt_deployment(),
            CHAT_API_KEY_VAR: self.get_chat_api_key(),
        }
        return [name for name, value in required.items() if not value]

    # Preferences (environment overrides JSON file)

    def save_debug_files(self) -> bool:
        env_value = self._env(SAVE_DEBUG_FILES_VAR)
        if env_value:
            return env_value.lower() == "true"
        return bool(self._read_all().get("save_debug_files", False))

    def get_debug_dir(self) -> Path:
        value = self._read_all().get("debug_dir")
        if value:
            return Path(str(value))
        return self._path.parent / "debug"

    def get_hotkey(self) -> str:
        env_value = self._env(HOTKEY_VAR)
        if env_value:
            return env_value
        return str(self._read_all().get("hotkey", DEFAULT_HOTKEY))

    def set_hotkey(self, hotkey: str) -> None:
        data = self._read_all()
        data["hotkey"] = hotkey
        self._write_all(data)

    def _env(self, name: str) -> str:
        value: Optional[str] = os.getenv(name)
        return value.strip() if value else ""

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
