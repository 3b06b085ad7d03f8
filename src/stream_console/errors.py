from __future__ import annotations


class StreamConsoleError(Exception):
    """Base error for all stream console errors."""

    def __init__(self, code: str, message: str, details: object = None) -> None:
        super().__init__(message)
        self.code = code
        self.details = details


class ConfigurationError(StreamConsoleError):
    """Stream configuration does not resolve to a usable URI."""

    def __init__(self, message: str = "No stream address configured") -> None:
        super().__init__("INVALID_CONFIG", message)


class StreamOpenError(StreamConsoleError):
    """The stream engine could not open a session."""

    def __init__(self, message: str, details: object = None) -> None:
        super().__init__("OPEN_FAILED", message, details)


class SettingsError(StreamConsoleError):
    """Console settings could not be persisted."""

    def __init__(self, message: str) -> None:
        super().__init__("SETTINGS", message)
