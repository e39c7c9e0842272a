"""Tests for relm.release.poll module."""

from __future__ import annotations

import importlib

import pytest

from relm.output.console import LineProgress, MockConsole
from relm.release.poll import MAX_ATTEMPTS, poll

poll_module = importlib.import_module("relm.release.poll")


@pytest.fixture
def sleeps(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    delays: list[float] = []
    monkeypatch.setattr(poll_module, "sleep", delays.append)
    return delays


class _Check:
    def __init__(self, succeed_on: int | None) -> None:
        self.calls = 0
        self._succeed_on = succeed_on

    def __call__(self) -> bool:
        self.calls += 1
        return self._succeed_on is not None and self.calls >= self._succeed_on


def test_stops_when_found(sleeps: list[float]) -> None:
    console = MockConsole()
    check = _Check(succeed_on=5)

    found = poll(check, progress=LineProgress(console))

    assert found is True
    assert check.calls == 5
    assert sleeps == [1.0] * 4
    assert console.messages[0] == "Polling for new version(s) to become available on npm"
    assert f"attempt: 5 of {MAX_ATTEMPTS}" in console.messages
    assert console.messages[-1] == "done"


def test_gives_up_after_max_attempts(sleeps: list[float]) -> None:
    console = MockConsole()
    check = _Check(succeed_on=None)

    found = poll(check, progress=LineProgress(console))

    assert found is False
    assert check.calls == MAX_ATTEMPTS == 300
    assert len(sleeps) == 300
    assert console.messages[-1] == "failed"


def test_custom_bounds(sleeps: list[float]) -> None:
    check = _Check(succeed_on=None)

    assert not poll(check, progress=LineProgress(MockConsole()), max_attempts=3, delay=0.5)
    assert check.calls == 3
    assert sleeps == [0.5, 0.5, 0.5]


def test_stops_progress_when_check_raises(sleeps: list[float]) -> None:
    console = MockConsole()

    def check() -> bool:
        raise OSError("registry unreachable")

    with pytest.raises(OSError, match="registry unreachable"):
        poll(check, progress=LineProgress(console))

    assert console.messages[-1] == "failed"
    assert sleeps == []
