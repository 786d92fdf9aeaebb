"""Re-export the transport interface and the normalized response model used by all providers."""

from .base import ModelTransport, ModelResponse

__all__ = [
    "ModelTransport",
    "ModelResponse",
]
