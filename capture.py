"""Camera and microphone capture via external tools.

Both captures read the tool's stdout straight into memory so nothing is
written to the SD card. The still image comes from ``fswebcam`` and the
audio clip from ``arecord``; the audio format is fixed at mono 16 kHz
signed 16-bit WAV.
"""

from __future__ import annotations

import logging
import subprocess
import time
from typing import Callable, Optional

from models import CaptureOutcome

logger = logging.getLogger(__name__)

AUDIO_DURATION_S = 5
AUDIO_SAMPLE_FORMAT = "S16_LE"
AUDIO_SAMPLE_RATE = 16000
AUDIO_CHANNELS = 1


class SubprocessCaptureGateway:
    def __init__(
        self,
        video_device: str = "/dev/video0",
        resolution: str = "1280x720",
        skip_frames: int = 10,
        jpeg_quality: int = 95,
        audio_device: str = "plughw:3,0",
        image_timeout_s: float = 15.0,
        audio_grace_s: float = 5.0,
    ) -> None:
        self.video_device = video_device
        self.resolution = resolution
        self.skip_frames = skip_frames
        self.jpeg_quality = jpeg_quality
        self.audio_device = audio_device
        self._image_timeout_s = image_timeout_s
        self._audio_grace_s = audio_grace_s

    def image_command(self) -> list[str]:
        # --skip lets auto exposure and white balance settle before the kept frame
        return [
            "fswebcam",
            "-d", self.video_device,
            "-r", self.resolution,
            "--no-banner",
            "--skip", str(self.skip_frames),
            "--jpeg", str(self.jpeg_quality),
            "--save", "-",
        ]

    def audio_command(self, duration_s: int) -> list[str]:
        return [
            "arecord",
            "-D", self.audio_device,
            "-f", AUDIO_SAMPLE_FORMAT,
            "-r", str(AUDIO_SAMPLE_RATE),
            "-c", str(AUDIO_CHANNELS),
            "-d", str(duration_s),
            "-t", "wav",
            "-",
        ]

    def capture_image(self) -> CaptureOutcome:
        logger.debug("Capturing image to buffer")
        outcome = self._run(self.image_command(), self._image_timeout_s)
        if outcome.ok:
            logger.info("Image captured, %d bytes", len(outcome.data or b""))
        else:
            logger.warning("Image capture failed: %s", outcome.error)
        return outcome

    def capture_audio(
        self,
        duration_s: int = AUDIO_DURATION_S,
        on_started: Optional[Callable[[], None]] = None,
    ) -> CaptureOutcome:
        cmd = self.audio_command(duration_s)
        if on_started is not None:
            on_started()
        started = time.monotonic()
        outcome = self._run(cmd, duration_s + self._audio_grace_s)
        logger.info("Audio command finished in %.2f seconds", time.monotonic() - started)
        if outcome.ok:
            logger.info("Audio captured, %d bytes", len(outcome.data or b""))
        else:
            logger.error("Audio capture failed: %s", outcome.error)
        return outcome

    def _run(self, cmd: list[str], timeout_s: float) -> CaptureOutcome:
        tool = cmd[0]
        try:
            proc = subprocess.Popen(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
        except FileNotFoundError:
            return CaptureOutcome(error=f"{tool} is not installed")
        except OSError as exc:
            return CaptureOutcome(error=f"{tool} failed to start: {exc}")

        try:
            stdout, stderr = proc.communicate(timeout=timeout_s)
        except subprocess.TimeoutExpired:
            proc.kill()
            proc.communicate()
            return CaptureOutcome(error=f"{tool} timed out after {timeout_s:.0f}s")

        stderr_text = (stderr or b"").decode(errors="replace").strip()
        if proc.returncode != 0:
            return CaptureOutcome(
                error=stderr_text or f"{tool} exited with code {proc.returncode}"
            )
        if stderr_text:
            logger.debug("%s stderr: %s", tool, stderr_text[:200])
        if not stdout:
            return CaptureOutcome(error=f"{tool} produced no output")
        return CaptureOutcome(data=stdout)
