from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from ..config import (
    ConnectionState,
    Credentials,
    ManagerOptions,
    StreamConfig,
)
from ..engine.base import EngineEvent, EventListener, StreamEngine, Surface
from ..uri import redact, resolve_uri
from .reconnect import ReconnectStrategy

logger = logging.getLogger("stream_console")

Unsubscribe = Callable[[], None]


class StreamConnectionManager:
    """Keeps a single network stream session alive for any number of surfaces.

    All state transitions happen on the event loop the manager is used
    from. Public coroutines are serialized by one lock; engine events are
    marshalled onto the loop and tagged with the generation of the
    session that produced them, so events from a replaced or closed
    session are dropped.
    """

    def __init__(
        self, engine: StreamEngine, options: ManagerOptions | None = None
    ) -> None:
        self._engine = engine
        self._options = options or ManagerOptions()
        self._strategy = ReconnectStrategy(self._options.reconnect)

        self._state: ConnectionState = "idle"
        self._config: StreamConfig | None = None
        self._uri: str | None = None
        self._maintain = False
        self._attempts = 0

        self._generation = 0
        self._session: Any = None
        self._early_ready = False
        self._surface: Surface | None = None

        self._lock = asyncio.Lock()
        self._connect_task: asyncio.Task[None] | None = None
        self._retry_handle: asyncio.TimerHandle | None = None
        self._retry_task: asyncio.Task[None] | None = None
        self._listeners: dict[str, list[Callable[..., Any]]] = {}

    # ── State ─────────────────────────────────────────────────────

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def attempts(self) -> int:
        return self._attempts

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def config(self) -> StreamConfig | None:
        return self._config

    @property
    def resolved_uri(self) -> str | None:
        return self._uri

    @property
    def session(self) -> Any:
        return self._session

    @property
    def maintaining(self) -> bool:
        return self._maintain

    def is_ready(self) -> bool:
        return self._state == "ready"

    def has_valid_configuration(self) -> bool:
        return self._uri is not None

    # ── Maintenance ───────────────────────────────────────────────

    async def start_maintaining(self, config: StreamConfig) -> None:
        """Keep a connection to *config* alive until told to stop."""
        async with self._lock:
            self._maintain = True
            changed = self._apply_config(config)
            if self._uri is None:
                await self._go_idle("no stream address configured")
                return
            if changed or self._state in ("idle", "exhausted"):
                await self._reconnect_now()

    async def stop_maintaining(self) -> None:
        async with self._lock:
            self._maintain = False
            await self._go_idle("maintenance stopped")

    async def update_configuration(self, config: StreamConfig) -> None:
        """Replace the stored configuration, reconnecting if it changed."""
        async with self._lock:
            needs_reconnect = self._apply_config(config)
            if self._uri is None:
                await self._go_idle("no stream address configured")
                return
            if self._maintain and needs_reconnect:
                await self._reconnect_now()

    # ── Surfaces ──────────────────────────────────────────────────

    async def attach_surface(self, surface: Surface) -> None:
        """Bind *surface* to the current session and to every later one."""
        async with self._lock:
            if surface is self._surface and self._session is not None:
                return
            if self._surface is not None and self._surface is not surface:
                self._unbind(self._surface)
            self._surface = surface

            if self._session is not None:
                self._bind(surface, self._session)
                return

            if self._uri is None or self._state != "idle":
                return
            if not self._maintain:
                logger.debug("Surface attached while idle, maintaining stream")
                self._maintain = True
            self._attempts = 0
            await self._launch_attempt()

    async def detach_surface(self, surface: Surface) -> None:
        """Unbind *surface* if it is the bound one. The session stays open."""
        async with self._lock:
            if surface is not self._surface:
                return
            self._surface = None
            if self._session is not None:
                self._unbind(surface)

    # ── Events ────────────────────────────────────────────────────

    def on(self, event: str, handler: Callable[..., Any]) -> Unsubscribe:
        """Register an event handler. Returns a function to unsubscribe."""
        listeners = self._listeners.setdefault(event, [])
        listeners.append(handler)

        def unsub() -> None:
            try:
                listeners.remove(handler)
            except ValueError:
                pass

        return unsub

    # ── Context manager ───────────────────────────────────────────

    async def __aenter__(self) -> StreamConnectionManager:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop_maintaining()

    # ── Private ───────────────────────────────────────────────────

    def _emit_event(self, event: str, *args: Any) -> None:
        for handler in self._listeners.get(event, []):
            try:
                handler(*args)
            except Exception:
                logger.exception("Event handler error for %s", event)

    def _set_state(self, state: ConnectionState) -> None:
        if state == self._state:
            return
        previous, self._state = self._state, state
        logger.debug("Stream state %s -> %s", previous, state)
        self._emit_event("state_changed", previous, state)

    def _apply_config(self, config: StreamConfig) -> bool:
        previous = self._config
        self._config = config
        self._uri = resolve_uri(config, self._engine.default_scheme)
        if previous is None:
            return True
        return previous.address != config.address or (
            previous.credentials or Credentials()
        ) != (config.credentials or Credentials())

    def _bind(self, surface: Surface, session: Any) -> None:
        try:
            surface.bind(session)
        except Exception:
            logger.exception("Surface bind failed")

    def _unbind(self, surface: Surface) -> None:
        try:
            surface.unbind()
        except Exception:
            logger.exception("Surface unbind failed")

    # ── Connection control (lock held) ────────────────────────────

    async def _go_idle(self, reason: str) -> None:
        await self._cancel_pending()
        await self._close_session()
        self._generation += 1
        self._attempts = 0
        if self._state != "idle":
            logger.info("Stream idle: %s", reason)
        self._set_state("idle")

    async def _reconnect_now(self) -> None:
        self._attempts = 0
        await self._launch_attempt()

    async def _launch_attempt(self) -> None:
        await self._cancel_pending()
        await self._close_session()

        uri = self._uri
        assert uri is not None
        self._attempts += 1
        self._generation += 1
        self._early_ready = False
        generation = self._generation

        logger.debug(
            "Connecting to %s (attempt %d)", redact(uri), self._attempts
        )
        self._set_state("connecting")
        self._connect_task = asyncio.get_running_loop().create_task(
            self._open_session(generation, uri)
        )

    async def _cancel_pending(self) -> None:
        # Events already queued by the attempt being cancelled are stale.
        self._generation += 1
        self._cancel_retry_timer()

        current = asyncio.current_task()
        for task in (self._retry_task, self._connect_task):
            if task is None or task is current or task.done():
                continue
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._cancel_retry_timer()
        self._retry_task = None
        self._connect_task = None

    def _cancel_retry_timer(self) -> None:
        if self._retry_handle is not None:
            self._retry_handle.cancel()
            self._retry_handle = None

    async def _close_session(self) -> None:
        session, self._session = self._session, None
        self._early_ready = False
        if session is None:
            return

        self._generation += 1
        if self._surface is not None:
            self._unbind(self._surface)
        try:
            await self._engine.close(session)
        except Exception:
            logger.exception("Error closing stream session")

    # ── Engine feedback ───────────────────────────────────────────

    async def _open_session(self, generation: int, uri: str) -> None:
        try:
            session = await self._engine.open(uri, self._make_listener(generation))
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if generation != self._generation:
                return
            self._connect_task = None
            logger.warning("Failed to open stream %s: %s", redact(uri), e)
            self._handle_failure(f"open failed: {e}")
            return

        if generation != self._generation:
            logger.debug("Discarding superseded session for %s", redact(uri))
            try:
                await self._engine.close(session)
            except Exception:
                logger.exception("Error closing superseded stream session")
            return

        self._connect_task = None
        self._session = session
        if self._surface is not None:
            self._bind(self._surface, session)
        if self._early_ready:
            self._mark_ready()

    def _make_listener(self, generation: int) -> EventListener:
        loop = asyncio.get_running_loop()

        def listener(event: EngineEvent, message: str | None = None) -> None:
            loop.call_soon_threadsafe(self._handle_event, generation, event, message)

        return listener

    def _handle_event(
        self, generation: int, event: EngineEvent, message: str | None
    ) -> None:
        if generation != self._generation:
            logger.debug("Ignoring stale %s event (generation %d)", event, generation)
            return

        if event == "ready":
            if self._state != "connecting":
                return
            if self._session is None:
                self._early_ready = True
                return
            self._mark_ready()
        elif event == "ended":
            logger.info("Stream ended")
            self._handle_failure("stream ended")
        elif event == "error":
            logger.warning("Stream error: %s", message)
            self._emit_event("stream_error", message)
            self._handle_failure(message or "stream error")
        else:
            logger.warning("Unknown stream event %r", event)

    def _mark_ready(self) -> None:
        self._early_ready = False
        self._attempts = 0
        self._set_state("ready")
        logger.info("Stream connected")
        self._emit_event("ready")

    def _handle_failure(self, reason: str) -> None:
        if self._state not in ("connecting", "ready"):
            return

        # Events from the failed session are stale from here on.
        self._generation += 1
        generation = self._generation
        loop = asyncio.get_running_loop()

        if not self._maintain or self._uri is None:
            self._set_state("idle")
            self._retry_task = loop.create_task(self._release_failed(generation))
            return

        delay = self._strategy.get_delay(self._attempts)
        if delay is None:
            logger.warning(
                "Giving up on stream after %d attempts (%s)", self._attempts, reason
            )
            self._set_state("exhausted")
            self._emit_event("exhausted", self._attempts)
            self._retry_task = loop.create_task(self._release_failed(generation))
            return

        logger.debug("Scheduling reconnection in %dms (%s)", delay, reason)
        self._set_state("recovering")
        self._emit_event("reconnecting", self._attempts + 1, delay)
        self._retry_handle = loop.call_later(
            delay / 1000, self._on_retry_due, generation
        )

    def _on_retry_due(self, generation: int) -> None:
        if generation != self._generation:
            return
        self._retry_handle = None
        self._retry_task = asyncio.get_running_loop().create_task(
            self._retry(generation)
        )

    async def _retry(self, generation: int) -> None:
        async with self._lock:
            if (
                generation != self._generation
                or self._state != "recovering"
                or not self._maintain
                or self._uri is None
            ):
                return
            await self._launch_attempt()

    async def _release_failed(self, generation: int) -> None:
        async with self._lock:
            if generation == self._generation:
                await self._close_session()
