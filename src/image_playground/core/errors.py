"""Error taxonomy for the image request pipeline.

Every failure the ``POST /api/images`` route can report is a subclass of
:class:`PlaygroundError`.  Each class carries the HTTP status that the API
layer responds with; the message is shown to the caller verbatim as
``{"error": message}``.
"""

from __future__ import annotations


class PlaygroundError(Exception):
    """Base class for errors reported to API callers.

    Attributes:
        message: Human-readable description returned to the caller.
        status_code: HTTP status used for the error response.
    """

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ConfigError(PlaygroundError):
    """A required server setting (usually the API key) is missing."""


class Unauthorized(PlaygroundError):
    """The shared-secret password hash is missing or wrong."""

    status_code = 401


class BadRequest(PlaygroundError):
    """The submitted form is missing required fields."""

    status_code = 400


class UpstreamError(PlaygroundError):
    """The provider call failed.

    ``status_code`` mirrors the provider's HTTP status when it sent one.
    """


class UpstreamDataError(PlaygroundError):
    """The provider answered, but without usable image data."""


class StorageError(PlaygroundError):
    """The output directory or an image file could not be written."""
