"""Concrete model transports and their provider-specific tool registries."""

from .gemini import GeminiTransport, GeminiToolRegistry
from .openai_api import OpenAITransport, OpenAIToolRegistry

__all__ = [
    "GeminiTransport",
    "GeminiToolRegistry",
    "OpenAITransport",
    "OpenAIToolRegistry",
]
