"""Debounced, per-file autosave against the remote store.

Edits re-arm a single-shot timer for the edited file; when the timer fires the
file's content *at that moment* is sent in exactly one persistence request.
Requests for the same file never overlap: a timer firing while a request is in
flight queues one more cycle that starts once the request resolves. Failed
saves are reported and left alone until the next edit or an explicit
``save_now``.

Timers and persistence are injected so the same state machine runs on the Qt
event loop and under a manual clock in tests. ``persist`` must invoke its
``done`` callback on the thread that drives the scheduler.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Protocol

from .errors import RemotePersistError
from .remote import RemoteStore

logger = logging.getLogger(__name__)

SAVE_DELAY_MS = 1000


class SaveStatus(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


TimerFactory = Callable[[int, Callable[[], None]], TimerHandle]
DoneCallback = Callable[[Optional[Exception]], None]
PersistFn = Callable[[str, str, DoneCallback], None]


def store_persist(store: RemoteStore) -> PersistFn:
    """Blocking ``persist`` that writes straight to ``store``."""

    def persist(file_id: str, content: str, done: DoneCallback) -> None:
        try:
            store.update_file_content(file_id, content)
        except RemotePersistError as exc:
            done(exc)
            return
        done(None)

    return persist


@dataclass
class _FileState:
    status: SaveStatus = SaveStatus.IDLE
    timer: Optional[TimerHandle] = None
    generation: int = 0
    in_flight: bool = False
    queued: bool = False


class AutosaveScheduler:
    def __init__(
        self,
        persist: PersistFn,
        content_of: Callable[[str], Optional[str]],
        timer_factory: TimerFactory,
        delay_ms: int = SAVE_DELAY_MS,
        on_status: Optional[Callable[[str, SaveStatus], None]] = None,
        on_saved: Optional[Callable[[str], None]] = None,
        on_error: Optional[Callable[[str, Exception], None]] = None,
    ) -> None:
        self._persist = persist
        self._content_of = content_of
        self._timer_factory = timer_factory
        self.delay_ms = delay_ms
        self.on_status = on_status
        self.on_saved = on_saved
        self.on_error = on_error
        self._files: Dict[str, _FileState] = {}
        self.closed = False

    def status(self, file_id: str) -> SaveStatus:
        state = self._files.get(file_id)
        return state.status if state is not None else SaveStatus.IDLE

    def in_flight(self, file_id: str) -> bool:
        state = self._files.get(file_id)
        return bool(state and state.in_flight)

    @property
    def busy(self) -> bool:
        return any(s.timer is not None or s.in_flight or s.queued for s in self._files.values())

    # ------------------------------------------------------------- events --
    def notify_change(self, file_id: str) -> None:
        if self.closed:
            return
        state = self._state(file_id)
        self._cancel_timer(state)
        generation = state.generation
        state.timer = self._timer_factory(self.delay_ms, lambda: self._fire(file_id, generation))
        if not state.in_flight:
            self._set_status(file_id, SaveStatus.PENDING)

    def save_now(self, file_id: str) -> None:
        if self.closed:
            return
        state = self._state(file_id)
        self._cancel_timer(state)
        if state.in_flight:
            state.queued = True
            return
        self._start(file_id)

    def close(self) -> None:
        self.closed = True
        for state in self._files.values():
            self._cancel_timer(state)
            state.queued = False

    # ----------------------------------------------------------- internals --
    def _state(self, file_id: str) -> _FileState:
        state = self._files.get(file_id)
        if state is None:
            state = self._files[file_id] = _FileState()
        return state

    def _cancel_timer(self, state: _FileState) -> None:
        # Bumping the generation turns an already-queued timeout into a no-op.
        state.generation += 1
        if state.timer is not None:
            state.timer.cancel()
            state.timer = None

    def _set_status(self, file_id: str, status: SaveStatus) -> None:
        state = self._state(file_id)
        if state.status is status:
            return
        logger.debug("autosave %s: %s -> %s", file_id, state.status.value, status.value)
        state.status = status
        if self.on_status is not None:
            self.on_status(file_id, status)

    def _fire(self, file_id: str, generation: int) -> None:
        state = self._files.get(file_id)
        if self.closed or state is None or state.generation != generation:
            return
        state.timer = None
        if state.in_flight:
            state.queued = True
            return
        self._start(file_id)

    def _start(self, file_id: str) -> None:
        state = self._state(file_id)
        content = self._content_of(file_id)
        if content is None:
            logger.warning("autosave %s: file is no longer loaded, skipping", file_id)
            self._set_status(file_id, SaveStatus.IDLE)
            return
        state.in_flight = True
        self._set_status(file_id, SaveStatus.SAVING)
        self._persist(file_id, content, lambda error: self._complete(file_id, error))

    def _complete(self, file_id: str, error: Optional[Exception]) -> None:
        state = self._state(file_id)
        state.in_flight = False
        if self.closed:
            logger.debug("autosave %s: completion after close ignored", file_id)
            return
        if error is not None:
            logger.error("autosave %s failed: %s", file_id, error)
            self._set_status(file_id, SaveStatus.ERROR)
            if self.on_error is not None:
                self.on_error(file_id, error)
        else:
            self._set_status(file_id, SaveStatus.SAVED)
            if self.on_saved is not None:
                self.on_saved(file_id)

        if self.closed:
            return
        if state.queued:
            state.queued = False
            self._start(file_id)
        elif state.timer is not None:
            self._set_status(file_id, SaveStatus.PENDING)
