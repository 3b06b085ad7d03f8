from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, TypeAlias

ConnectionState: TypeAlias = Literal[
    "idle", "connecting", "ready", "recovering", "exhausted"
]
PlaybackMode: TypeAlias = Literal["camera", "video"]

DEFAULT_SCHEME = "rtsp"
DEFAULT_CONNECT_TIMEOUT_MS = 10_000


@dataclass(frozen=True)
class Credentials:
    username: str = ""
    password: str = ""

    @property
    def is_blank(self) -> bool:
        return not self.username.strip() and not self.password.strip()


@dataclass(frozen=True)
class StreamConfig:
    address: str = ""
    credentials: Credentials | None = None


@dataclass(frozen=True)
class ReconnectOptions:
    max_attempts: int = 5
    base_delay_ms: int = 3_000


@dataclass(frozen=True)
class ManagerOptions:
    reconnect: ReconnectOptions = field(default_factory=ReconnectOptions)
