"""GPT Image Playground — FastAPI REST API layer.

This package contains the FastAPI application, the Pydantic request/response
models, and the two halves of the image pipeline around the provider call.

Modules
-------
main
    FastAPI application with all route handlers and the ``main()`` CLI
    entry point.
models
    Pydantic models for normalized requests and API responses.
normalizer
    Form authentication, defaulting and clamping.
persister
    Storage-mode resolution and saving of returned images.
"""
