"""OpenAI-compatible model transport."""

from .core import OpenAITransport
from .registry import OpenAIToolRegistry

__all__ = ["OpenAITransport", "OpenAIToolRegistry"]
