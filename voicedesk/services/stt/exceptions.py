"""Custom exceptions for STT services."""


class STTServiceError(Exception):
    """Base exception for STT service errors."""

    pass


class STTConnectionError(STTServiceError):
    """Raised when the streaming connection cannot be opened."""

    pass
