from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Callable, List, Optional, Tuple

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))


class _ManualTimer:
    def __init__(self, due: int, callback: Callable[[], None]) -> None:
        self.due = due
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualClock:
    """Drives single-shot timers by hand; ``now`` is in milliseconds."""

    def __init__(self) -> None:
        self.now = 0
        self.timers: List[_ManualTimer] = []

    def timer(self, delay_ms: int, callback: Callable[[], None]) -> _ManualTimer:
        timer = _ManualTimer(self.now + delay_ms, callback)
        self.timers.append(timer)
        return timer

    def armed(self) -> List[_ManualTimer]:
        return [t for t in self.timers if not t.cancelled and not t.fired]

    def advance(self, ms: int) -> None:
        target = self.now + ms
        while True:
            due = [t for t in self.armed() if t.due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.due)
            self.now = timer.due
            timer.fired = True
            timer.callback()
        self.now = target


class FakePersist:
    """Records persistence requests and lets the test resolve them."""

    def __init__(self, clock: ManualClock) -> None:
        self.clock = clock
        self.calls: List[Tuple[str, str, int]] = []
        self._pending: List[Tuple[str, Callable[[Optional[Exception]], None]]] = []
        self.max_in_flight: dict = {}

    def __call__(self, file_id: str, content: str, done: Callable[[Optional[Exception]], None]) -> None:
        self.calls.append((file_id, content, self.clock.now))
        self._pending.append((file_id, done))
        in_flight = sum(1 for fid, _ in self._pending if fid == file_id)
        self.max_in_flight[file_id] = max(self.max_in_flight.get(file_id, 0), in_flight)

    @property
    def in_flight(self) -> int:
        return len(self._pending)

    def complete(self, error: Optional[Exception] = None, file_id: Optional[str] = None) -> None:
        for index, (fid, done) in enumerate(self._pending):
            if file_id is None or fid == file_id:
                del self._pending[index]
                done(error)
                return
        raise AssertionError("no pending save to complete")


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None) -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = "" if payload is None else json.dumps(payload)
        self.content = self.text.encode("utf-8")

    def json(self) -> Any:
        return json.loads(self.text)


class FakeHttp:
    """Stands in for ``requests.Session`` in client tests."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, str, dict]] = []
        self.responses: List[Any] = []

    def queue(self, item: Any) -> None:
        self.responses.append(item)

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append((method, url, kwargs))
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def persist(clock: ManualClock) -> FakePersist:
    return FakePersist(clock)


@pytest.fixture
def http() -> FakeHttp:
    return FakeHttp()
