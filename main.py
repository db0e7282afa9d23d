"""Application entrypoint.

Usage:
    mirror-ai                         # tray + overlay, F9 starts a run
    mirror-ai --log-level DEBUG       # verbose logging
    mirror-ai --persona-file me.txt   # replace the default persona
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from capture import SubprocessCaptureGateway
from config import EnvConfigStore
from debug_sink import DirectoryDebugSink
from display import DisplayStateMachine, render
from hotkey import GlobalHotkeyAdapter
from models import DisplayState, DisplayView, StatusEvent
from overlay import OverlayWindow
from pipeline import PipelineOrchestrator
from prompts import load_persona
from transcriber import AzureWhisperTranscriber
from vision_client import AzureChatAnswerClient

try:
    from PySide6.QtCore import QObject, QSize, Signal
    from PySide6.QtGui import QAction, QBrush, QColor, QIcon, QPainter, QPixmap
    from PySide6.QtWidgets import QApplication, QInputDialog, QMenu, QMessageBox, QSystemTrayIcon
except Exception as exc:  # pragma: no cover
    raise SystemExit(f"PySide6 is required to run the desktop app: {exc}")

logger = logging.getLogger(__name__)


def _create_icon(color: str = "#888888", size: int = 22) -> QIcon:
    """Generate a simple circular tray icon with the given color."""
    pixmap = QPixmap(QSize(size, size))
    pixmap.fill(QColor(0, 0, 0, 0))
    painter = QPainter(pixmap)
    painter.setRenderHint(QPainter.Antialiasing, True)
    painter.setBrush(QBrush(QColor(color)))
    painter.setPen(QColor(color))
    painter.drawEllipse(2, 2, size - 4, size - 4)
    painter.end()
    return QIcon(pixmap)


ICON_COLORS = {
    DisplayView.READY: "#888888",
    DisplayView.PREPARING: "#FFCC00",
    DisplayView.LISTENING: "#FF4444",
    DisplayView.SHOWING_TRANSCRIPT: "#4488FF",
    DisplayView.SHOWING_ANSWER: "#44CC66",
}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Mirror AI: capture, transcribe and answer on a hotkey",
    )
    parser.add_argument(
        "--log-level", default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set the logging verbosity (default: INFO)",
    )
    parser.add_argument(
        "--env-file", type=Path, default=None,
        help="Path to a .env file with the Azure credentials",
    )
    parser.add_argument(
        "--persona-file", type=Path, default=None,
        help="Text file replacing the default persona prompt",
    )
    parser.add_argument(
        "--audio-device", default="plughw:3,0",
        help="ALSA capture device passed to arecord",
    )
    parser.add_argument(
        "--video-device", default="/dev/video0",
        help="V4L2 device passed to fswebcam",
    )
    return parser.parse_args(argv)


def setup_logging(level_name: str) -> None:
    """Configure root logger with a consistent format."""
    level = getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(levelname)-7s  %(name)s  %(message)s",
        datefmt="%H:%M:%S",
    )


class UIBridge(QObject):
    status_signal = Signal(object)  # StatusEvent
    display_signal = Signal(object)  # DisplayState


class App:
    def __init__(self, args: argparse.Namespace) -> None:
        self.app = QApplication(sys.argv)
        self.app.setQuitOnLastWindowClosed(False)
        self.config_store = EnvConfigStore(env_path=args.env_file)
        missing = self.config_store.missing_credentials()
        if missing:
            logger.warning("Missing configuration: %s", ", ".join(missing))

        self.overlay = OverlayWindow()
        self.ui = UIBridge()
        self.ui.status_signal.connect(self._on_status_ui)
        self.ui.display_signal.connect(self._on_display_ui)

        debug_sink = None
        if self.config_store.save_debug_files():
            debug_sink = DirectoryDebugSink(self.config_store.get_debug_dir())
            logger.info("Saving debug files to %s", self.config_store.get_debug_dir())

        self.pipeline = PipelineOrchestrator(
            gateway=SubprocessCaptureGateway(
                video_device=args.video_device,
                audio_device=args.audio_device,
            ),
            transcriber=AzureWhisperTranscriber(
                endpoint=self.config_store.get_stt_endpoint(),
                api_key=self.config_store.get_stt_api_key(),
                deployment=self.config_store.get_stt_deployment(),
            ),
            answer_client=AzureChatAnswerClient(
                endpoint=self.config_store.get_chat_endpoint(),
                api_key=self.config_store.get_chat_api_key(),
                deployment=self.config_store.get_chat_deployment(),
                persona=load_persona(args.persona_file),
            ),
            on_status=self._on_status,
            debug_sink=debug_sink,
        )
        self.display = DisplayStateMachine(
            request_run=self.pipeline.trigger,
            on_change=self._on_display_change,
        )
        self.hotkey = GlobalHotkeyAdapter(hotkey_name=self.config_store.get_hotkey())

        self.tray = QSystemTrayIcon()
        self.tray.setIcon(_create_icon(ICON_COLORS[DisplayView.READY]))
        self.tray.setToolTip("Mirror AI — Ready")
        self._setup_menu()
        self.tray.show()
        self.overlay.show_view(render(self.display.state))

    def _setup_menu(self) -> None:
        menu = QMenu()

        ask_action = QAction("Ask now", menu)
        ask_action.triggered.connect(self.display.trigger)
        menu.addAction(ask_action)

        hotkey_action = QAction("Set Hotkey", menu)
        hotkey_action.triggered.connect(self._set_hotkey)
        menu.addAction(hotkey_action)

        menu.addSeparator()
        quit_action = QAction("Quit", menu)
        quit_action.triggered.connect(self.quit)
        menu.addAction(quit_action)

        self.tray.setContextMenu(menu)

    def _set_hotkey(self) -> None:
        value, ok = QInputDialog.getText(
            None, "Hotkey", "Use pynput key format, e.g. Key.f9"
        )
        if not ok or not value:
            return
        self.config_store.set_hotkey(value)
        QMessageBox.information(None, "Saved", "Hotkey saved. Restart app to apply.")

    # ------------------------------------------------------------------
    # Callbacks (called from worker threads → emit signals for UI thread)
    # ------------------------------------------------------------------

    def _on_status(self, event: StatusEvent) -> None:
        self.ui.status_signal.emit(event)

    def _on_display_change(self, state: DisplayState) -> None:
        self.ui.display_signal.emit(state)

    # ------------------------------------------------------------------
    # UI thread handlers (safe for Qt)
    # ------------------------------------------------------------------

    def _on_status_ui(self, event: StatusEvent) -> None:
        self.display.handle_status(event)

    def _on_display_ui(self, state: DisplayState) -> None:
        self.overlay.show_view(render(state))
        self.tray.setIcon(_create_icon(ICON_COLORS[state.view]))
        self.tray.setToolTip(f"Mirror AI — {state.view.value.replace('_', ' ').title()}")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self) -> int:
        try:
            self.hotkey.start(on_trigger=self.display.trigger)
        except Exception as exc:
            logger.warning("Hotkey disabled: %s", exc)
            self.overlay.show_view(render(DisplayState.ready(f"Hotkey disabled: {exc}")))
        return self.app.exec()

    def quit(self) -> None:
        self.hotkey.stop()
        self.app.quit()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)
    logger.info("Mirror AI starting")
    app = App(args)
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
