from __future__ import annotations


class RelayError(Exception):
    """Base error for a single chat request; rendered as ``{"error": message}``."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidRequest(RelayError):
    status_code = 400


class UpstreamError(RelayError):
    """Gemini call failed, answered non-2xx, sent garbage, or said nothing."""

    status_code = 500


class TransportError(RelayError):
    """Request body could not be read or decoded."""

    status_code = 500


class NotFound(RelayError):
    status_code = 404
