"""Qt runtime adapters: the one-second game clock and foreground tracking."""

from __future__ import annotations

from typing import Callable, Optional

from PySide6.QtCore import QObject, Qt, QTimer
from PySide6.QtGui import QGuiApplication

from queens.core.session import SessionController

TICK_INTERVAL_MS = 1000


class QtTickSource(QObject):
    """Single QTimer firing once a second while started."""

    def __init__(self, parent: Optional[QObject] = None, interval_ms: int = TICK_INTERVAL_MS) -> None:
        super().__init__(parent)
        self._callback: Optional[Callable[[], None]] = None
        self._timer = QTimer(self)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self._on_timeout)

    @property
    def is_running(self) -> bool:
        return self._timer.isActive()

    @property
    def interval_ms(self) -> int:
        return self._timer.interval()

    def start(self, callback: Callable[[], None]) -> None:
        self._callback = callback
        if not self._timer.isActive():
            self._timer.start()

    def stop(self) -> None:
        if self._timer.isActive():
            self._timer.stop()

    def _on_timeout(self) -> None:
        if self._callback is not None:
            self._callback()


def is_foreground(state: Qt.ApplicationState) -> bool:
    return state == Qt.ApplicationState.ApplicationActive


def connect_visibility(app: QGuiApplication, controller: SessionController) -> None:
    """Suspend the game clock whenever the application leaves the foreground."""
    app.applicationStateChanged.connect(
        lambda state: controller.on_visibility_changed(is_foreground(state))
    )
