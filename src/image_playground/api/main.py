"""GPT Image Playground — FastAPI Application.

This module defines the FastAPI ``app`` instance, its routes, and the
``main()`` CLI function that launches the uvicorn server.

Architecture
------------
The image route is a linear pipeline:

1. **Configuration** is read per request through the :func:`get_config`
   dependency (environment variables and ``.env``).
2. **Normalization** (:mod:`image_playground.api.normalizer`) authenticates
   the form and turns it into a ``GenerationRequest`` or ``EditRequest``.
3. **Provider call** goes through the client chosen by
   :func:`~image_playground.core.clients.select_client` (standard OpenAI or
   Azure).
4. **Persistence** (:mod:`image_playground.api.persister`) writes the returned
   images to disk or returns them for client-side storage.

Every failure is a :class:`~image_playground.core.errors.PlaygroundError`
rendered as ``{"error": message}`` by a single exception handler.

Endpoints
---------
========  ============================  ====================================
Method    Path                          Purpose
========  ============================  ====================================
POST      ``/api/images``               Generate or edit images
GET       ``/api/image/{filename}``     Serve a saved image (``fs`` mode)
GET       ``/api/auth-status``          Whether a password is required
========  ============================  ====================================

Usage
-----
CLI (installed entry point)::

    image-playground

Direct invocation::

    python -m image_playground.api.main
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Callable
from typing import Any

import openai
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse

from image_playground import __version__
from image_playground.api.models import (
    EditRequest,
    ErrorResponse,
    GenerationRequest,
    ImagesResponse,
)
from image_playground.api.normalizer import normalize_form, validate_output_format
from image_playground.api.persister import (
    ensure_output_dir,
    persist_images,
    resolve_storage_mode,
    usage_to_dict,
)
from image_playground.core.clients import ImageClient, require_api_key, select_client
from image_playground.core.config import PlaygroundConfig, get_config
from image_playground.core.errors import PlaygroundError, UpstreamError

logger = logging.getLogger(__name__)

ClientSelector = Callable[[PlaygroundConfig], ImageClient]

# Saved images are always named ``{timestamp_ms}-{index}.{ext}``.
_IMAGE_FILENAME = re.compile(r"^\d+-\d+\.(png|jpeg|webp)$")

_MEDIA_TYPES = {
    "png": "image/png",
    "jpeg": "image/jpeg",
    "webp": "image/webp",
}

# ---------------------------------------------------------------------------
# FastAPI application instance.
# ---------------------------------------------------------------------------
app = FastAPI(
    title="GPT Image Playground",
    description="Proxy for OpenAI-compatible image generation and editing.",
    version=__version__,
)

# The browser front-end may be served from a different origin during
# development.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PlaygroundError)
async def playground_error_handler(request: Request, exc: PlaygroundError) -> JSONResponse:
    """Render a :class:`PlaygroundError` as ``{"error": message}``."""
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


# ---------------------------------------------------------------------------
# Dependencies.
# ---------------------------------------------------------------------------


def get_client_selector() -> ClientSelector:
    """Return the function that builds the provider client for a request.

    Overridden in tests to inject a fake client.
    """
    return select_client


# ---------------------------------------------------------------------------
# Provider call helper.
# ---------------------------------------------------------------------------


async def call_provider(
    client: ImageClient,
    image_request: GenerationRequest | EditRequest,
    model: str,
) -> Any:
    """Send the normalized request to the provider.

    Args:
        client: Provider client for this request.
        image_request: Normalized generate or edit request.
        model: Upstream model name.

    Returns:
        The provider's images response.

    Raises:
        UpstreamError: If the provider call fails.  The provider's HTTP
            status is kept when it sent one.
    """
    try:
        if image_request.mode == "edit":
            options = client.edit_options()
            logger.info(
                f"Calling {client.kind} edit with params: {image_request.describe()}, options: {options}"
            )
            result = await client.edit(**image_request.to_params(model), **options)
        else:
            params = image_request.to_params(model)
            logger.info(f"Calling {client.kind} generate with params: {params}")
            result = await client.generate(**params)
    except openai.APIError as exc:
        status = getattr(exc, "status_code", None) or 500
        logger.error(f"Provider call failed ({status}): {exc.message}", exc_info=True)
        raise UpstreamError(exc.message, status_code=status) from exc

    logger.info("OpenAI API call successful.")
    return result


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


@app.post(
    "/api/images",
    response_model=ImagesResponse,
    response_model_exclude_none=True,
    responses={
        400: {"model": ErrorResponse, "description": "Missing or invalid form fields"},
        401: {"model": ErrorResponse, "description": "Missing or wrong password hash"},
        500: {"model": ErrorResponse, "description": "Configuration, provider or storage failure"},
    },
)
async def create_images(
    request: Request,
    config: PlaygroundConfig = Depends(get_config),
    client_selector: ClientSelector = Depends(get_client_selector),
) -> ImagesResponse:
    """Generate or edit images through the configured provider.

    This endpoint:

    1. Checks that the API key for the configured endpoint is present.
    2. Resolves the storage mode and, in ``fs`` mode, ensures the output
       directory exists.
    3. Authenticates and normalizes the submitted form.
    4. Calls the provider's generate or edit endpoint.
    5. Saves or returns the resulting images.

    Returns:
        :class:`ImagesResponse` with one descriptor per image and the
        provider's token usage.

    Raises:
        PlaygroundError: Rendered as ``{"error": ...}`` with 400, 401, 500 or
            the provider's status.
    """
    logger.info("Received POST request to /api/images")
    require_api_key(config)

    try:
        storage_mode = resolve_storage_mode(config)
        output_dir = config.output_dir
        if storage_mode == "fs":
            output_dir = await asyncio.to_thread(ensure_output_dir, config.output_dir)

        async with request.form() as form:
            image_request = await normalize_form(form, config)
            output_format = validate_output_format(form.get("output_format"))

        client = client_selector(config)
        result = await call_provider(client, image_request, config.model_name)

        images = await persist_images(
            result,
            output_format=output_format,
            storage_mode=storage_mode,
            output_dir=output_dir,
        )
    except PlaygroundError as exc:
        logger.error(f"Error in /api/images: {exc.message}")
        raise
    except Exception as exc:
        logger.error(f"Error in /api/images: {exc}", exc_info=True)
        raise PlaygroundError(str(exc) or "An unexpected error occurred.") from exc

    return ImagesResponse(images=images, usage=usage_to_dict(getattr(result, "usage", None)))


@app.get("/api/image/{filename}")
async def get_image(filename: str, config: PlaygroundConfig = Depends(get_config)) -> FileResponse:
    """Serve an image previously saved in ``fs`` mode.

    Args:
        filename: ``{timestamp_ms}-{index}.{ext}`` name from a descriptor.

    Raises:
        HTTPException: 400 for a malformed filename, 404 if the file does not
            exist.
    """
    match = _IMAGE_FILENAME.match(filename)
    if match is None:
        raise HTTPException(status_code=400, detail="Invalid filename")

    filepath = config.output_dir / filename
    if not filepath.is_file():
        raise HTTPException(status_code=404, detail="Image not found")

    return FileResponse(filepath, media_type=_MEDIA_TYPES[match.group(1)])


@app.get("/api/auth-status")
async def auth_status(config: PlaygroundConfig = Depends(get_config)) -> dict:
    """Report whether callers must send a password hash."""
    return {"passwordRequired": bool(config.app_password)}


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Host, port and log level come from :class:`PlaygroundConfig`
    (``SERVER_HOST``, ``SERVER_PORT``, ``LOG_LEVEL``).  Registered as the
    ``image-playground`` console script in ``pyproject.toml``.
    """
    import uvicorn

    config = PlaygroundConfig()
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    uvicorn.run(
        "image_playground.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
