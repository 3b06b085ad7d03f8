from __future__ import annotations

from typing import Any, Callable, Literal, Protocol, TypeAlias, runtime_checkable

EngineEvent: TypeAlias = Literal["ready", "ended", "error"]

# Called as listener(event, message); message is only set for "error".
EventListener = Callable[[EngineEvent, str | None], None]

Unsubscribe = Callable[[], None]


@runtime_checkable
class StreamEngine(Protocol):
    """Opens and closes network stream sessions for the connection manager."""

    default_scheme: str

    async def open(self, uri: str, listener: EventListener) -> Any:
        """Open a session for *uri* and return its handle.

        Lifecycle events for the session are reported through *listener*,
        which may be called from any thread. Raising means the attempt
        failed.
        """

    async def close(self, session: Any) -> None:
        """Release *session*. Must be safe to call on a failed session."""


@runtime_checkable
class Surface(Protocol):
    """Presentation element that renders whichever session it is bound to."""

    def bind(self, session: Any) -> None: ...

    def unbind(self) -> None: ...
