"""Pydantic request and response models for the image API.

The ``POST /api/images`` endpoint accepts a multipart form rather than JSON,
so the request models here are not bound by FastAPI directly.  Instead the
normalizer (:mod:`image_playground.api.normalizer`) builds them from the form
once every field has been defaulted and clamped.  They are frozen: a request
is built once and discarded after the provider call.

Models
------
UploadedImage
    An uploaded file (primary image or mask) held in memory.
GenerationRequest
    Normalized parameters for a text-to-image call.
EditRequest
    Normalized parameters for an image edit call.
ImageResult
    One descriptor in the success response.
ImagesResponse
    Success body for ``POST /api/images``.
ErrorResponse
    Error body for every failed request.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

OutputFormat = Literal["png", "jpeg", "webp"]


class UploadedImage(BaseModel):
    """An uploaded image file.

    Attributes:
        filename: Client-supplied filename.
        content: Raw file bytes.
        content_type: MIME type reported by the client.
    """

    model_config = ConfigDict(frozen=True)

    filename: str = Field(default="image.png", description="Client-supplied filename.")
    content: bytes = Field(..., description="Raw file bytes.")
    content_type: str = Field(default="application/octet-stream", description="MIME type.")

    def as_file(self) -> tuple[str, bytes, str]:
        """Return the ``(name, bytes, mime)`` tuple the OpenAI SDK uploads."""
        return (self.filename, self.content, self.content_type)


class GenerationRequest(BaseModel):
    """Normalized parameters for a generate call.

    ``output_format`` is forwarded exactly as submitted (defaulting to
    ``png``); the filename extension is derived separately.

    Attributes:
        prompt: Text prompt.
        n: Number of images (1-10).
        size: Image size, e.g. ``1024x1024``.
        quality: Quality preset.
        output_format: Requested encoding.
        output_compression: Optional compression level (0-100), jpeg/webp only.
        background: Background mode.
        moderation: Moderation level.
    """

    model_config = ConfigDict(frozen=True)

    mode: Literal["generate"] = "generate"
    prompt: str = Field(..., min_length=1)
    n: int = Field(default=1, ge=1, le=10)
    size: str = "1024x1024"
    quality: str = "auto"
    output_format: str = "png"
    output_compression: int | None = Field(default=None, ge=0, le=100)
    background: str = "auto"
    moderation: str = "auto"

    def to_params(self, model: str) -> dict[str, Any]:
        """Return keyword arguments for ``client.images.generate``."""
        params: dict[str, Any] = {
            "model": model,
            "prompt": self.prompt,
            "n": self.n,
            "size": self.size,
            "quality": self.quality,
            "output_format": self.output_format,
            "background": self.background,
            "moderation": self.moderation,
        }
        if self.output_compression is not None:
            params["output_compression"] = self.output_compression
        return params


class EditRequest(BaseModel):
    """Normalized parameters for an edit call.

    ``size`` and ``quality`` are ``None`` when the caller asked for ``auto``;
    the provider treats an omitted field differently from a literal ``auto``.
    """

    model_config = ConfigDict(frozen=True)

    mode: Literal["edit"] = "edit"
    prompt: str = Field(..., min_length=1)
    image: UploadedImage
    mask: UploadedImage | None = None
    n: int = Field(default=1, ge=1, le=10)
    size: str | None = None
    quality: str | None = None

    def to_params(self, model: str) -> dict[str, Any]:
        """Return keyword arguments for ``client.images.edit``."""
        params: dict[str, Any] = {
            "model": model,
            "prompt": self.prompt,
            "image": self.image.as_file(),
            "n": self.n,
        }
        if self.size is not None:
            params["size"] = self.size
        if self.quality is not None:
            params["quality"] = self.quality
        if self.mask is not None:
            params["mask"] = self.mask.as_file()
        return params

    def describe(self) -> dict[str, Any]:
        """Loggable view of the request, with file names instead of bytes."""
        return {
            "prompt": self.prompt,
            "image": self.image.filename,
            "mask": self.mask.filename if self.mask else "N/A",
            "n": self.n,
            "size": self.size,
            "quality": self.quality,
        }


class ImageResult(BaseModel):
    """One generated image in the response.

    Attributes:
        filename: ``{timestamp_ms}-{index}.{ext}``.
        b64_json: Base64-encoded image bytes as returned by the provider.
        output_format: Normalized format (``png``, ``jpeg`` or ``webp``).
        path: Server URL of the saved file (``fs`` storage mode only).
    """

    filename: str
    b64_json: str
    output_format: OutputFormat
    path: str | None = None


class ImagesResponse(BaseModel):
    """Success body for ``POST /api/images``."""

    images: list[ImageResult]
    usage: dict[str, Any] | None = None


class ErrorResponse(BaseModel):
    """Error body returned for every failed request."""

    error: str
