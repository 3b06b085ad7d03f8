from __future__ import annotations

import asyncio
from typing import Any, Callable

from stream_console import StreamConfig
from stream_console.config import Credentials
from stream_console.errors import StreamOpenError

CAMERA = StreamConfig("cam.local:554/s", Credentials("a", "b"))
OTHER_CAMERA = StreamConfig("cam2.local:554/s", Credentials("a", "b"))


async def settle(rounds: int = 10) -> None:
    """Let queued callbacks and freshly created tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


async def wait_for(
    condition: Callable[[], bool],
    *,
    timeout: float = 5.0,
    interval: float = 0.01,
) -> None:
    """Poll *condition* every *interval* seconds until it returns ``True``."""
    deadline = asyncio.get_running_loop().time() + timeout
    while not condition():
        if asyncio.get_running_loop().time() > deadline:
            raise TimeoutError("wait_for timed out")
        await asyncio.sleep(interval)


class FakeSession:
    def __init__(self, index: int, uri: str, listener: Callable[..., None]) -> None:
        self.index = index
        self.uri = uri
        self.listener = listener
        self.closed = False

    def emit(self, event: str, message: str | None = None) -> None:
        self.listener(event, message)


class FakeEngine:
    """Scriptable stream engine recording every open and close."""

    default_scheme = "rtsp"

    def __init__(self, *, fail_always: bool = False, ready_on_open: bool = False) -> None:
        self.fail_always = fail_always
        self.ready_on_open = ready_on_open
        self.failures: list[Exception] = []
        self.gate: asyncio.Event | None = None
        self.open_calls: list[str] = []
        self.listeners: list[Callable[..., None]] = []
        self.sessions: list[FakeSession] = []

    @property
    def live_sessions(self) -> list[FakeSession]:
        return [s for s in self.sessions if not s.closed]

    @property
    def last(self) -> FakeSession:
        return self.sessions[-1]

    async def open(self, uri: str, listener: Callable[..., None]) -> FakeSession:
        self.open_calls.append(uri)
        self.listeners.append(listener)
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_always:
            raise StreamOpenError("camera unreachable")
        if self.failures:
            raise self.failures.pop(0)

        session = FakeSession(len(self.sessions) + 1, uri, listener)
        self.sessions.append(session)
        if self.ready_on_open:
            session.emit("ready")
        return session

    async def close(self, session: FakeSession) -> None:
        session.closed = True


class FakeSurface:
    def __init__(self) -> None:
        self.session: Any = None
        self.binds: list[Any] = []
        self.unbinds = 0

    def bind(self, session: Any) -> None:
        self.session = session
        self.binds.append(session)

    def unbind(self) -> None:
        self.session = None
        self.unbinds += 1
