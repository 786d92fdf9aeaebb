"""Gemini model transport."""

from .core import GeminiTransport
from .registry import GeminiToolRegistry

__all__ = ["GeminiTransport", "GeminiToolRegistry"]
