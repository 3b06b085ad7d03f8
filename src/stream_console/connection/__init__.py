from .manager import StreamConnectionManager
from .reconnect import ReconnectStrategy

__all__ = ["StreamConnectionManager", "ReconnectStrategy"]
