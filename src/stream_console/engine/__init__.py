from .base import EngineEvent, EventListener, StreamEngine, Surface
from .websocket import WebSocketSession, WebSocketStreamEngine

__all__ = [
    "EngineEvent",
    "EventListener",
    "StreamEngine",
    "Surface",
    "WebSocketSession",
    "WebSocketStreamEngine",
]
