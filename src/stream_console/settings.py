"""Persisted console settings.

The settings file is a flat JSON object::

    {"address": "cam.local:554/s", "username": "a", "password": "b", "mode": "camera"}

Missing keys take their defaults and an unreadable file yields the
default settings, so a corrupt file never keeps the console from starting.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .config import Credentials, PlaybackMode, StreamConfig
from .errors import SettingsError
from .uri import embed_credentials, split_user_info, strip_user_info

logger = logging.getLogger("stream_console")


class ConsoleSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    address: str = ""
    username: str = ""
    password: str = ""
    mode: PlaybackMode = "camera"

    @field_validator("address", "username", "password", mode="before")
    @classmethod
    def _text_or_blank(cls, v: Any) -> str:
        return v if isinstance(v, str) else ""

    @field_validator("mode", mode="before")
    @classmethod
    def _known_mode(cls, v: Any) -> str:
        """Lowercase the stored mode, falling back to camera when unknown."""
        if isinstance(v, str) and v.lower() in ("camera", "video"):
            return v.lower()
        logger.warning("Unknown playback mode %r, using camera", v)
        return "camera"

    @property
    def has_stream_address(self) -> bool:
        return bool(self.address.strip())

    @property
    def display_address(self) -> str:
        """Address with the stored credentials shown inline."""
        return embed_credentials(
            self.address, Credentials(self.username, self.password)
        )

    def stream_config(self) -> StreamConfig:
        credentials = Credentials(self.username, self.password)
        return StreamConfig(
            address=self.address,
            credentials=None if credentials.is_blank else credentials,
        )


class SettingsStore:
    """Loads and saves :class:`ConsoleSettings` as a JSON file."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> ConsoleSettings:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ConsoleSettings()
        except OSError as e:
            logger.warning("Cannot read settings %s: %s", self._path, e)
            return ConsoleSettings()

        try:
            return ConsoleSettings.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("Ignoring corrupt settings %s: %s", self._path, e)
            return ConsoleSettings()

    def save(self, settings: ConsoleSettings) -> None:
        tmp = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(settings.model_dump(), indent=2), encoding="utf-8")
            os.replace(tmp, self._path)
        except OSError as e:
            raise SettingsError(f"Cannot write settings {self._path}: {e}") from e

    def update(self, **changes: Any) -> ConsoleSettings:
        """Apply *changes* to the stored settings and save the result."""
        settings = ConsoleSettings.model_validate(self.load().model_dump() | changes)
        self.save(settings)
        return settings

    def save_entered_address(
        self, text: str, username: str = "", password: str = ""
    ) -> ConsoleSettings:
        """Store an address as typed on the settings screen.

        Credentials typed inside the URL replace the separate fields and
        the address is stored without them.
        """
        embedded = split_user_info(text)
        if not embedded.is_blank:
            username, password = embedded.username, embedded.password
        return self.update(
            address=strip_user_info(text).strip(),
            username=username,
            password=password,
        )
