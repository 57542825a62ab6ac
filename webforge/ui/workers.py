"""Qt glue for the core: single-shot timers and background calls."""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional

from PyQt6 import QtCore
from PyQt6.QtCore import QObject, QThread, pyqtSignal

from ..core.autosave import TimerFactory

logger = logging.getLogger(__name__)

DoneHandler = Callable[[Any, Optional[Exception]], None]


class QtTimer:
    def __init__(self, parent: QObject, delay_ms: int, callback: Callable[[], None]) -> None:
        self._timer = QtCore.QTimer(parent)
        self._timer.setSingleShot(True)
        self._timer.setInterval(delay_ms)
        self._timer.timeout.connect(callback)
        self._timer.timeout.connect(self._timer.deleteLater)
        self._timer.start()

    def cancel(self) -> None:
        self._timer.stop()
        self._timer.deleteLater()


def qt_timer_factory(parent: QObject) -> TimerFactory:
    return lambda delay_ms, callback: QtTimer(parent, delay_ms, callback)


class _CallWorker(QObject):
    finished = pyqtSignal(object)
    errored = pyqtSignal(object)

    def __init__(self, func: Callable[[], Any]) -> None:
        super().__init__()
        self.func = func

    def run(self) -> None:
        try:
            result = self.func()
        except Exception as exc:  # noqa: BLE001
            self.errored.emit(exc)
            return
        self.finished.emit(result)


class BackgroundRunner(QObject):
    """Runs blocking remote calls on short-lived threads.

    ``on_done(result, error)`` is delivered back on the GUI thread.
    """

    def __init__(self, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._threads: List[QThread] = []
        self._workers: List[QObject] = []

    def run(self, func: Callable[[], Any], on_done: DoneHandler) -> None:
        thread = QThread(self)
        worker = _CallWorker(func)
        worker.moveToThread(thread)

        def handle_finish(result: Any) -> None:
            on_done(result, None)
            thread.quit()

        def handle_error(exc: Exception) -> None:
            logger.error("Background call failed: %s", exc)
            on_done(None, exc)
            thread.quit()

        def cleanup() -> None:
            if thread in self._threads:
                self._threads.remove(thread)
            if worker in self._workers:
                self._workers.remove(worker)
            worker.deleteLater()
            thread.deleteLater()

        worker.finished.connect(handle_finish)
        worker.errored.connect(handle_error)
        thread.finished.connect(cleanup)
        thread.started.connect(worker.run)
        self._threads.append(thread)
        self._workers.append(worker)
        thread.start()

    def wait_all(self, msecs: int = 5000) -> None:
        for thread in list(self._threads):
            thread.quit()
            thread.wait(msecs)
