"""Result persistence for provider image responses.

The provider returns an ordered list of base64-encoded images.  Depending on
the effective storage mode each one is either written to the output directory
(``fs``) or handed back to the caller untouched (``indexeddb``, where the
browser stores it).

Storage mode resolution
-----------------------
1. ``NEXT_PUBLIC_IMAGE_STORAGE_MODE`` / ``IMAGE_STORAGE_MODE`` set to ``fs`` or
   ``indexeddb`` wins.
2. Otherwise, managed hosting (``VERCEL=1``) means ``indexeddb``, since the
   server filesystem is not persistent there.
3. Otherwise ``fs``.

Batch semantics
---------------
All files of a batch are written concurrently and awaited as a unit.  If one
write fails the whole request fails; files already written by the other
writes stay on disk.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
import time
from pathlib import Path
from typing import Any

from image_playground.api.models import ImageResult
from image_playground.core.config import PlaygroundConfig, StorageMode
from image_playground.core.errors import StorageError, UpstreamDataError

logger = logging.getLogger(__name__)

#: URL prefix under which saved images are served back.
IMAGE_URL_PREFIX = "/api/image"


def resolve_storage_mode(config: PlaygroundConfig) -> StorageMode:
    """Return the effective storage mode for this request."""
    explicit = config.image_storage_mode
    if explicit == "fs":
        mode: StorageMode = "fs"
    elif explicit == "indexeddb":
        mode = "indexeddb"
    elif config.is_managed_hosting:
        mode = "indexeddb"
    else:
        mode = "fs"

    logger.info(
        f"Effective Image Storage Mode: {mode} "
        f"(Explicit: {explicit or 'unset'}, Vercel: {config.is_managed_hosting})"
    )
    return mode


def ensure_output_dir(output_dir: Path) -> Path:
    """Create the output directory if it does not exist yet.

    Args:
        output_dir: Directory that receives generated images.

    Returns:
        The resolved directory path.

    Raises:
        StorageError: If the directory cannot be created or is not a
            directory.
    """
    path = Path(output_dir).resolve()
    if path.is_dir():
        return path
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.error(f"Error creating output directory {path}: {exc}", exc_info=True)
        raise StorageError("Failed to create image output directory.") from exc
    logger.info(f"Created output directory: {path}")
    return path


def build_filename(timestamp_ms: int, index: int, extension: str) -> str:
    """Return the ``{timestamp_ms}-{index}.{extension}`` filename."""
    return f"{timestamp_ms}-{index}.{extension}"


def _decode(b64_json: str, index: int) -> bytes:
    # Non-alphabet characters (line breaks in wrapped payloads) are skipped.
    try:
        content = base64.b64decode(b64_json)
    except (binascii.Error, ValueError) as exc:
        raise UpstreamDataError(f"Image data at index {index} is not valid base64.") from exc
    if not content:
        raise UpstreamDataError(f"Image data at index {index} is not valid base64.")
    return content


def _write_image(filepath: Path, content: bytes) -> None:
    logger.info(f"Attempting to save image to: {filepath}")
    try:
        filepath.write_bytes(content)
    except OSError as exc:
        logger.error(f"Error writing image {filepath}: {exc}", exc_info=True)
        raise StorageError(f"Failed to save image {filepath.name}.") from exc
    logger.info(f"Successfully saved image: {filepath.name}")


def usage_to_dict(usage: Any) -> dict[str, Any] | None:
    """Convert the provider's usage object to a plain dictionary."""
    if usage is None:
        return None
    if isinstance(usage, dict):
        return usage
    if hasattr(usage, "model_dump"):
        return usage.model_dump(exclude_none=True)
    return None


async def persist_images(
    response: Any,
    *,
    output_format: str,
    storage_mode: StorageMode,
    output_dir: Path,
    timestamp_ms: int | None = None,
) -> list[ImageResult]:
    """Turn a provider response into result descriptors.

    Args:
        response: Provider images response (``response.data[i].b64_json``).
        output_format: Normalized format, used as the file extension.
        storage_mode: ``fs`` to write files, ``indexeddb`` to skip writing.
        output_dir: Target directory in ``fs`` mode.
        timestamp_ms: Batch timestamp; defaults to the current time.

    Returns:
        One :class:`ImageResult` per provider entry, in response order.

    Raises:
        UpstreamDataError: If the response has no entries, an entry has no
            base64 payload, or a payload cannot be decoded.
        StorageError: If any file write fails.
    """
    data = getattr(response, "data", None) if response is not None else None
    if not data:
        logger.error(f"Invalid or empty data received from API: {response!r}")
        raise UpstreamDataError("Failed to retrieve image data from API.")

    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)

    results: list[ImageResult] = []
    writes: list[tuple[Path, bytes]] = []

    for index, entry in enumerate(data):
        b64_json = getattr(entry, "b64_json", None)
        if not b64_json:
            logger.error(f"Image data {index} is missing b64_json.")
            raise UpstreamDataError(f"Image data at index {index} is missing base64 data.")

        filename = build_filename(timestamp_ms, index, output_format)
        result = ImageResult(filename=filename, b64_json=b64_json, output_format=output_format)

        if storage_mode == "fs":
            writes.append((output_dir / filename, _decode(b64_json, index)))
            result = result.model_copy(update={"path": f"{IMAGE_URL_PREFIX}/{filename}"})

        results.append(result)

    if writes:
        await asyncio.gather(*(asyncio.to_thread(_write_image, path, content) for path, content in writes))

    logger.info(f"All images processed. Mode: {storage_mode}")
    return results
