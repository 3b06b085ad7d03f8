from __future__ import annotations

import logging
from typing import Literal, TypeAlias

from .config import ManagerOptions
from .connection.manager import StreamConnectionManager
from .engine.base import StreamEngine, Surface
from .settings import ConsoleSettings, SettingsStore

logger = logging.getLogger("stream_console")

CameraStatus: TypeAlias = Literal["missing_stream", "connecting", "ready"]


class MediaConsole:
    """Owns the settings store and the stream manager for one device."""

    def __init__(
        self,
        engine: StreamEngine,
        store: SettingsStore,
        options: ManagerOptions | None = None,
    ) -> None:
        self._store = store
        self._manager = StreamConnectionManager(engine, options)
        self._settings = ConsoleSettings()

    @property
    def manager(self) -> StreamConnectionManager:
        return self._manager

    @property
    def settings(self) -> ConsoleSettings:
        return self._settings

    async def start(self) -> None:
        await self._apply(self._store.load())

    async def apply_settings(self, settings: ConsoleSettings) -> None:
        """Persist *settings* and start or stop the camera stream to match."""
        self._store.save(settings)
        await self._apply(settings)

    async def toggle_mode(self) -> ConsoleSettings:
        mode = "video" if self._settings.mode == "camera" else "camera"
        settings = self._settings.model_copy(update={"mode": mode})
        await self.apply_settings(settings)
        return settings

    async def show_camera(self, surface: Surface) -> CameraStatus:
        """Attach *surface* to the camera stream using the stored settings."""
        self._settings = self._store.load()
        await self._manager.update_configuration(self._settings.stream_config())
        if not self._manager.has_valid_configuration():
            return "missing_stream"

        await self._manager.attach_surface(surface)
        return "ready" if self._manager.is_ready() else "connecting"

    async def hide_camera(self, surface: Surface) -> None:
        await self._manager.detach_surface(surface)

    async def shutdown(self) -> None:
        await self._manager.stop_maintaining()

    async def _apply(self, settings: ConsoleSettings) -> None:
        self._settings = settings
        if settings.mode == "camera" and settings.has_stream_address:
            config = settings.stream_config()
            await self._manager.update_configuration(config)
            await self._manager.start_maintaining(config)
        else:
            logger.debug("Camera stream not needed in %s mode", settings.mode)
            await self._manager.stop_maintaining()
