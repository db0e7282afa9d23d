"""Optional on-disk copies of captured buffers for debugging."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class DirectoryDebugSink:
    def __init__(self, directory: Path) -> None:
        self._directory = directory

    def save(self, audio: bytes, image: Optional[bytes]) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        stamp = int(time.time() * 1000)
        audio_path = self._directory / f"debug_audio_{stamp}.wav"
        audio_path.write_bytes(audio)
        logger.info("Debug audio saved: %s", audio_path)
        if image:
            image_path = self._directory / f"debug_image_{stamp}.jpg"
            image_path.write_bytes(image)
            logger.info("Debug image saved: %s", image_path)
