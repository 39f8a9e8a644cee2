"""GPT Image Playground - API proxy for OpenAI-compatible image generation and editing."""

__version__ = "0.1.0"
