"""Form normalization for ``POST /api/images``.

Turns the submitted form into a validated :class:`GenerationRequest` or
:class:`EditRequest`, applying defaults and clamping along the way.

The small parsing helpers (:func:`parse_int`, :func:`clamp_count`,
:func:`validate_output_format`, :func:`parse_compression`) are pure and total:
they never raise, and bad input maps to an explicit default.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import re

from starlette.datastructures import FormData, UploadFile

from image_playground.api.models import EditRequest, GenerationRequest, UploadedImage
from image_playground.core.config import PlaygroundConfig
from image_playground.core.errors import BadRequest, Unauthorized

logger = logging.getLogger(__name__)

MIN_IMAGES = 1
MAX_IMAGES = 10

VALID_OUTPUT_FORMATS = ("png", "jpeg", "webp")
DEFAULT_OUTPUT_FORMAT = "png"

# Formats that accept an ``output_compression`` level.
COMPRESSIBLE_FORMATS = ("jpeg", "webp")

IMAGE_FIELD_PREFIX = "image_"

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


# ---------------------------------------------------------------------------
# Pure parsing helpers.
# ---------------------------------------------------------------------------


def parse_int(value: object) -> int | None:
    """Parse the leading integer of *value*.

    ``"12"`` -> 12, ``"3.7"`` -> 3, ``"8px"`` -> 8, ``"abc"`` -> ``None``.
    """
    if value is None or isinstance(value, UploadFile):
        return None
    match = _LEADING_INT.match(str(value))
    if match is None:
        return None
    return int(match.group(1))


def clamp_count(value: object) -> int:
    """Return the number of images to request, clamped to 1-10.

    Missing, unparsable and zero values all mean one image.
    """
    n = parse_int(value) or 1
    return max(MIN_IMAGES, min(n, MAX_IMAGES))


def validate_output_format(value: object) -> str:
    """Normalize an output format to ``png``, ``jpeg`` or ``webp``.

    Matching is case-insensitive and ``jpg`` is accepted as ``jpeg``.
    Anything else, including an empty value, falls back to ``png``.
    """
    if not value or isinstance(value, UploadFile):
        return DEFAULT_OUTPUT_FORMAT

    normalized = str(value).lower()
    if normalized == "jpg":
        normalized = "jpeg"

    if normalized in VALID_OUTPUT_FORMATS:
        return normalized
    return DEFAULT_OUTPUT_FORMAT


def parse_compression(output_format: str, value: object) -> int | None:
    """Return the compression level to forward, or ``None`` to omit it.

    Only ``jpeg`` and ``webp`` take a compression level, and only values that
    parse to an integer in 0-100 are forwarded.
    """
    if output_format not in COMPRESSIBLE_FORMATS or not value:
        return None
    compression = parse_int(value)
    if compression is None or not 0 <= compression <= 100:
        return None
    return compression


def hash_password(secret: str) -> str:
    """Return the SHA-256 hex digest callers send as ``passwordHash``."""
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


# ---------------------------------------------------------------------------
# Form handling.
# ---------------------------------------------------------------------------


def _text(form: FormData, key: str) -> str | None:
    value = form.get(key)
    if value is None or isinstance(value, UploadFile):
        return None
    return str(value)


async def _read_upload(upload: UploadFile) -> UploadedImage:
    content = await upload.read()
    return UploadedImage(
        filename=upload.filename or "image.png",
        content=content,
        content_type=upload.content_type or "application/octet-stream",
    )


def verify_password(form: FormData, config: PlaygroundConfig) -> None:
    """Check the caller's password hash when a shared secret is configured.

    Raises:
        Unauthorized: If the hash is missing or does not match.
    """
    if not config.app_password:
        return

    client_hash = _text(form, "passwordHash")
    if not client_hash:
        logger.error("Missing password hash.")
        raise Unauthorized("Unauthorized: Missing password hash.")

    expected_hash = hash_password(config.app_password)
    if not hmac.compare_digest(client_hash.encode("utf-8"), expected_hash.encode("utf-8")):
        logger.error("Invalid password hash.")
        raise Unauthorized("Unauthorized: Invalid password.")


def build_generation_request(form: FormData, prompt: str) -> GenerationRequest:
    """Build a :class:`GenerationRequest` from generate-mode form fields."""
    output_format = _text(form, "output_format") or "png"
    return GenerationRequest(
        prompt=prompt,
        n=clamp_count(_text(form, "n")),
        size=_text(form, "size") or "1024x1024",
        quality=_text(form, "quality") or "auto",
        output_format=output_format,
        output_compression=parse_compression(output_format, _text(form, "output_compression")),
        background=_text(form, "background") or "auto",
        moderation=_text(form, "moderation") or "auto",
    )


async def build_edit_request(form: FormData, prompt: str) -> EditRequest:
    """Build an :class:`EditRequest` from edit-mode form fields.

    The first ``image_*`` upload (in form order) is the image to edit; the
    provider accepts a single image.

    Raises:
        BadRequest: If no ``image_*`` upload is present.
    """
    image_files = [
        value
        for key, value in form.multi_items()
        if key.startswith(IMAGE_FIELD_PREFIX) and isinstance(value, UploadFile)
    ]
    if not image_files:
        raise BadRequest("No image file provided for editing.")

    mask_file = form.get("mask")
    mask = await _read_upload(mask_file) if isinstance(mask_file, UploadFile) else None

    size = _text(form, "size") or "auto"
    quality = _text(form, "quality") or "auto"

    return EditRequest(
        prompt=prompt,
        image=await _read_upload(image_files[0]),
        mask=mask,
        n=clamp_count(_text(form, "n")),
        size=None if size == "auto" else size,
        quality=None if quality == "auto" else quality,
    )


async def normalize_form(
    form: FormData,
    config: PlaygroundConfig,
) -> GenerationRequest | EditRequest:
    """Authenticate the form and normalize it into a request model.

    Args:
        form: The submitted form.
        config: Configuration for the current request.

    Returns:
        A :class:`GenerationRequest` or :class:`EditRequest`.

    Raises:
        Unauthorized: Missing or wrong password hash.
        BadRequest: Missing ``mode``/``prompt``, unknown mode, or an edit
            without an image.
    """
    verify_password(form, config)

    mode = _text(form, "mode")
    prompt = _text(form, "prompt")
    logger.info(f"Mode: {mode}, Prompt: {prompt[:50] + '...' if prompt else 'N/A'}")

    if not mode or not prompt:
        raise BadRequest("Missing required parameters: mode and prompt")

    if mode == "generate":
        return build_generation_request(form, prompt)
    if mode == "edit":
        return await build_edit_request(form, prompt)
    raise BadRequest("Invalid mode specified")
