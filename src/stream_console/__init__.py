from .config import (
    ConnectionState,
    Credentials,
    ManagerOptions,
    PlaybackMode,
    ReconnectOptions,
    StreamConfig,
)
from .connection import ReconnectStrategy, StreamConnectionManager
from .console import CameraStatus, MediaConsole
from .engine import (
    EngineEvent,
    EventListener,
    StreamEngine,
    Surface,
    WebSocketSession,
    WebSocketStreamEngine,
)
from .errors import (
    ConfigurationError,
    SettingsError,
    StreamConsoleError,
    StreamOpenError,
)
from .settings import ConsoleSettings, SettingsStore
from .uri import (
    embed_credentials,
    encode_user_info_component,
    require_uri,
    resolve_uri,
    split_user_info,
    strip_user_info,
)

__all__ = [
    "StreamConnectionManager",
    "ReconnectStrategy",
    "MediaConsole",
    "CameraStatus",
    "StreamEngine",
    "Surface",
    "EngineEvent",
    "EventListener",
    "WebSocketStreamEngine",
    "WebSocketSession",
    "StreamConfig",
    "Credentials",
    "ReconnectOptions",
    "ManagerOptions",
    "ConnectionState",
    "PlaybackMode",
    "ConsoleSettings",
    "SettingsStore",
    "StreamConsoleError",
    "ConfigurationError",
    "StreamOpenError",
    "SettingsError",
    "resolve_uri",
    "require_uri",
    "encode_user_info_component",
    "split_user_info",
    "strip_user_info",
    "embed_credentials",
]
