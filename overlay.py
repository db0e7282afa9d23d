"""Overlay window showing the assistant's current display state."""

from __future__ import annotations

from html import escape

from models import RenderedView

try:
    from PySide6.QtCore import Qt
    from PySide6.QtWidgets import QApplication, QLabel, QVBoxLayout, QWidget
except Exception:  # pragma: no cover
    Qt = None  # type: ignore
    QApplication = None  # type: ignore
    QLabel = object  # type: ignore
    QWidget = object  # type: ignore
    QVBoxLayout = object  # type: ignore

_BASE_STYLE = "font-size: 22px; padding: 18px; background: rgba(0,0,0,200); border-radius: 12px;"
_STYLES = {
    "ready": "color: #BBBBBB;",
    "status": "color: white; font-weight: bold;",
    "transcript": "color: white;",
    "answer": "color: white;",
}


def view_to_html(view: RenderedView) -> str:
    parts = []
    if view.label:
        parts.append(f"<div style='color:#888888; font-size:16px'>{escape(view.label)}</div>")
    parts.append(f"<div>{escape(view.body)}</div>")
    if view.footer:
        parts.append(f"<div style='color:#777777; font-size:16px'>{escape(view.footer)}</div>")
    return "".join(parts)


class OverlayWindow(QWidget):
    def __init__(self, width: int = 720) -> None:
        if Qt is None:
            raise RuntimeError("PySide6 is not installed")
        super().__init__()
        self.setWindowFlags(
            Qt.WindowStaysOnTopHint | Qt.FramelessWindowHint | Qt.Tool
        )
        self.setAttribute(Qt.WA_TranslucentBackground, True)
        self.setFixedWidth(width)

        self._label = QLabel("")
        self._label.setWordWrap(True)
        self._label.setTextFormat(Qt.RichText)
        self._label.setStyleSheet(_BASE_STYLE + _STYLES["ready"])

        layout = QVBoxLayout()
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(self._label)
        self.setLayout(layout)

    def _center_bottom(self) -> None:
        """Position the window near the bottom centre of the primary screen."""
        if QApplication is None:
            return
        screen = QApplication.primaryScreen()
        if screen is None:
            return
        geom = screen.availableGeometry()
        self.adjustSize()
        x = geom.x() + (geom.width() - self.width()) // 2
        y = geom.y() + geom.height() - self.height() - 60
        self.move(x, y)

    def show_view(self, view: RenderedView) -> None:
        self._label.setStyleSheet(_BASE_STYLE + _STYLES.get(view.style, _STYLES["ready"]))
        self._label.setText(view_to_html(view))
        self._center_bottom()
        self.show()
