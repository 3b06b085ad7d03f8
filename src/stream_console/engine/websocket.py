from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from websockets.asyncio.client import ClientConnection, connect as ws_connect
from websockets.exceptions import ConnectionClosedError, WebSocketException

from ..config import DEFAULT_CONNECT_TIMEOUT_MS
from ..errors import StreamOpenError
from ..uri import redact
from .base import EventListener, Unsubscribe

logger = logging.getLogger("stream_console")

FrameHandler = Callable[[bytes], None]


class WebSocketSession:
    """One open media feed over a WebSocket connection.

    The session reports ``ready`` when the first frame arrives, ``ended``
    when the server closes normally and ``error`` for anything else.
    """

    def __init__(self, uri: str, ws: ClientConnection, listener: EventListener) -> None:
        self._uri = uri
        self._ws = ws
        self._listener = listener
        self._frame_handlers: list[FrameHandler] = []
        self._recv_task: asyncio.Task[None] | None = None
        self._closing = False
        self._frames_received = 0

    @property
    def uri(self) -> str:
        return self._uri

    @property
    def frames_received(self) -> int:
        return self._frames_received

    def on_frame(self, handler: FrameHandler) -> Unsubscribe:
        self._frame_handlers.append(handler)

        def unsub() -> None:
            try:
                self._frame_handlers.remove(handler)
            except ValueError:
                pass

        return unsub

    # -- Lifecycle --------------------------------------------------------

    def start(self) -> None:
        self._recv_task = asyncio.create_task(self._receive_loop())

    async def close(self) -> None:
        if self._closing:
            return
        self._closing = True

        if self._recv_task is not None:
            self._recv_task.cancel()
            try:
                await self._recv_task
            except asyncio.CancelledError:
                pass
            self._recv_task = None

        try:
            await self._ws.close()
        except Exception:
            logger.debug("Error closing %s", redact(self._uri), exc_info=True)
        self._frame_handlers.clear()

    # -- Private ----------------------------------------------------------

    def _report(self, event: Any, message: str | None = None) -> None:
        if self._closing:
            return
        try:
            self._listener(event, message)
        except Exception:
            logger.exception("Stream listener error for %s", event)

    def _emit_frame(self, frame: bytes) -> None:
        for handler in list(self._frame_handlers):
            try:
                handler(frame)
            except Exception:
                logger.exception("Frame handler error")

    async def _receive_loop(self) -> None:
        try:
            async for raw in self._ws:
                frame = raw if isinstance(raw, bytes) else raw.encode("utf-8")
                self._frames_received += 1
                if self._frames_received == 1:
                    self._report("ready")
                self._emit_frame(frame)
        except ConnectionClosedError as e:
            self._report("error", f"Connection closed abnormally: {e}")
        except asyncio.CancelledError:
            return
        except Exception as e:
            self._report("error", str(e) or type(e).__name__)
        else:
            # Clean close, the async for loop exits normally for 1000/1001.
            self._report("ended")


class WebSocketStreamEngine:
    """Stream engine for cameras that publish frames over a WebSocket."""

    default_scheme = "ws"

    def __init__(self, *, connect_timeout_ms: int = DEFAULT_CONNECT_TIMEOUT_MS) -> None:
        self._connect_timeout_ms = connect_timeout_ms

    async def open(self, uri: str, listener: EventListener) -> WebSocketSession:
        try:
            ws = await asyncio.wait_for(
                ws_connect(uri, ping_interval=None, max_size=None),
                timeout=self._connect_timeout_ms / 1000,
            )
        except asyncio.TimeoutError:
            raise StreamOpenError(
                f"Connect timeout after {self._connect_timeout_ms}ms"
            ) from None
        except (OSError, WebSocketException) as e:
            raise StreamOpenError(f"Cannot open {redact(uri)}: {e}") from e

        session = WebSocketSession(uri, ws, listener)
        session.start()
        return session

    async def close(self, session: WebSocketSession) -> None:
        await session.close()
