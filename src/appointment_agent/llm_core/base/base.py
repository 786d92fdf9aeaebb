"""Core abstractions for model provider transports."""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Generic, List, Optional, Sequence, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from ..exceptions import MalformedModelResponseError, TransportError
from ..logger import get_logger
from ..messages import BaseMessage
from ..tools.models import ToolCallRequest
from ..tools.registry import ToolRegistry

logger = get_logger(__name__)


ProviderResT = TypeVar("ProviderResT")


class ModelResponse(BaseModel, Generic[ProviderResT]):
    """Normalized model output: either final text or a batch of tool calls.

    Attributes:
        text: Natural-language reply, set when the model did not request tools.
        tool_calls: Tool calls requested by the model, empty for a text reply.
        raw: Provider-specific response payload for advanced use cases.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    text: Optional[str] = None
    tool_calls: List[ToolCallRequest] = Field(default_factory=list)
    raw: Optional[ProviderResT] = None

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)

    @classmethod
    def from_parts(
        cls, text: Optional[str], tool_calls: Sequence[ToolCallRequest], raw: Any = None
    ) -> "ModelResponse[Any]":
        """Build a response, giving tool calls precedence over text.

        Raises:
            MalformedModelResponseError: If there is neither text nor a tool call.
        """
        if tool_calls:
            if text:
                logger.debug(f"Dropping text that accompanied tool calls: {text[:50]}...")
            return cls(tool_calls=list(tool_calls), raw=raw)
        if text and text.strip():
            return cls(text=text, raw=raw)
        raise MalformedModelResponseError("Model response contained neither text nor tool calls.")


class ModelTransport(ABC, Generic[ProviderResT]):
    """Abstract boundary to a model provider.

    A transport is stateless: every call receives the complete conversation and
    the tool catalog rendered from ``registry``. Implementations provide
    ``_generate_impl``; :meth:`generate` adds the timeout and maps provider
    failures to ``TransportError``. Failed calls are not retried.
    """

    def __init__(self, registry: Optional[ToolRegistry] = None, timeout: Optional[float] = 60.0):
        self.registry = registry
        self.timeout = timeout

    async def generate(self, history: Sequence[BaseMessage]) -> ModelResponse[ProviderResT]:
        """
        Send the full history to the model.

        Args:
            history: Every turn of the conversation, seed turn first.

        Returns:
            The model's reply, either text or tool calls.

        Raises:
            MalformedModelResponseError: If the reply is unusable.
            TransportError: If the provider call failed or timed out.
        """
        try:
            return await asyncio.wait_for(self._generate_impl(history), timeout=self.timeout)
        except TransportError:
            raise
        except asyncio.TimeoutError as e:
            msg = f"Model provider did not answer within {self.timeout} seconds."
            logger.error(msg)
            raise TransportError(msg) from e
        except Exception as e:
            logger.error(f"Model provider call failed: {e}", exc_info=True)
            raise TransportError(f"Model provider call failed: {e}") from e

    @abstractmethod
    async def _generate_impl(self, history: Sequence[BaseMessage]) -> ModelResponse[ProviderResT]:
        pass
