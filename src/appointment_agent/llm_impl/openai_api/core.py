import json
from typing import Any, Dict, Iterable, List, Optional, Sequence, cast

from openai import AsyncOpenAI
from openai.types.chat import ChatCompletion

from ...llm_core import ModelTransport, ModelResponse, MalformedModelResponseError, get_logger
from ...llm_core.messages import (
    BaseMessage,
    SystemMessage,
    UserMessage,
    AssistantMessage,
    ToolCallMessage,
    ToolResultMessage,
)
from ...llm_core.tools.models import ToolCallRequest
from .registry import OpenAIToolRegistry

logger = get_logger(__name__)


class OpenAITransport(ModelTransport[ChatCompletion]):
    """
    Model transport for OpenAI (and OpenAI-compatible) chat completion models.
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        model_name: str,
        registry: Optional[OpenAIToolRegistry] = None,
        temp: float = 1.0,
        max_tokens: int = 3000,
        timeout: Optional[float] = 60.0,
    ):
        """
        Initializes the OpenAI transport.

        Args:
            client: The initialized AsyncOpenAI client.
            model_name: The identifier for the model to use (e.g., 'gpt-4o-mini').
            registry: Registry whose tools are offered to the model.
            temp: The temperature for text generation, controlling randomness.
            max_tokens: The maximum number of tokens to generate in the response.
            timeout: Seconds to wait for a single model call.
        """
        super().__init__(registry=registry, timeout=timeout)
        self.model: str = model_name
        self.client: AsyncOpenAI = client
        self.temperature = temp
        self.max_tokens = max_tokens
        self.tools = registry.tool_object if registry is not None else None

    async def _generate_impl(self, history: Sequence[BaseMessage]) -> ModelResponse[ChatCompletion]:
        messages = self._convert_history(history)
        request: Dict[str, Any] = {
            "model": self.model,
            "messages": cast(Iterable[Any], messages),
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        if self.tools:
            request["tools"] = self.tools

        logger.debug(f"Sending {len(messages)} message(s) to OpenAI model '{self.model}'.")
        response = await self.client.chat.completions.create(**request)
        return self._parse_response(response)

    @staticmethod
    def _convert_history(history: Sequence[BaseMessage]) -> List[Dict[str, Any]]:
        """
        Converts the provider-agnostic history to OpenAI message dictionaries.

        A tool result batch expands into one ``tool`` message per result.
        """
        openai_history: List[Dict[str, Any]] = []
        for msg in history:
            if isinstance(msg, SystemMessage):
                openai_history.append({"role": "system", "content": msg.content})
            elif isinstance(msg, UserMessage):
                openai_history.append({"role": "user", "content": msg.content})
            elif isinstance(msg, AssistantMessage):
                openai_history.append({"role": "assistant", "content": msg.content})
            elif isinstance(msg, ToolCallMessage):
                openai_history.append(
                    {
                        "role": "assistant",
                        "content": msg.content or None,
                        "tool_calls": [
                            {
                                "id": call.call_id,
                                "type": "function",
                                "function": {"name": call.name, "arguments": _as_json(call.arguments)},
                            }
                            for call in msg.tool_calls
                        ],
                    }
                )
            elif isinstance(msg, ToolResultMessage):
                for result in msg.results:
                    openai_history.append(
                        {
                            "role": "tool",
                            "tool_call_id": result.call_id,
                            "content": json.dumps(result.response, default=str),
                        }
                    )
        return openai_history

    @staticmethod
    def _parse_response(response: ChatCompletion) -> ModelResponse[ChatCompletion]:
        """
        Turns a chat completion into text or tool calls.

        Raises:
            MalformedModelResponseError: If there is no choice or the choice is empty.
        """
        if not response.choices:
            raise MalformedModelResponseError("OpenAI returned no choices.")

        message = response.choices[0].message
        tool_calls = []
        for tool_call in message.tool_calls or []:
            if tool_call.type != "function":
                logger.debug(f"Ignoring non-function tool call of type '{tool_call.type}'.")
                continue
            tool_calls.append(
                ToolCallRequest(
                    name=tool_call.function.name,
                    arguments=tool_call.function.arguments,
                    call_id=tool_call.id,
                )
            )

        return ModelResponse.from_parts(text=message.content, tool_calls=tool_calls, raw=response)


def _as_json(arguments: Any) -> str:
    if arguments is None:
        return "{}"
    if isinstance(arguments, str):
        return arguments
    return json.dumps(arguments, default=str)
