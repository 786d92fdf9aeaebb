import json
from typing import Any, Dict, List, Optional, Sequence, Tuple

from google.genai import types
from google.genai.client import AsyncClient
from google.genai.types import GenerateContentResponse

from ...llm_core import ModelTransport, ModelResponse, MalformedModelResponseError, get_logger
from ...llm_core.messages import (
    BaseMessage,
    SystemMessage,
    UserMessage,
    AssistantMessage,
    ToolCallMessage,
    ToolResultMessage,
)
from ...llm_core.tools.models import ToolCallRequest, is_local_call_id
from .registry import GeminiToolRegistry

logger = get_logger(__name__)

DEFAULT_SAFETY_SETTINGS: List[types.SafetySetting] = [
    types.SafetySetting(category=category, threshold=types.HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE)
    for category in (
        types.HarmCategory.HARM_CATEGORY_HARASSMENT,
        types.HarmCategory.HARM_CATEGORY_HATE_SPEECH,
        types.HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT,
        types.HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT,
    )
]


class GeminiTransport(ModelTransport[GenerateContentResponse]):
    """
    Model transport for Google's Gemini models.

    Every call rebuilds the Gemini ``contents`` from the full conversation; the
    seed ``SystemMessage`` becomes the request's ``system_instruction``.
    """

    def __init__(
        self,
        aclient: AsyncClient,
        model_name: str,
        registry: Optional[GeminiToolRegistry] = None,
        temp: float = 1.0,
        max_tokens: int = 3000,
        timeout: Optional[float] = 60.0,
        safety_settings: Optional[List[types.SafetySetting]] = None,
    ):
        """
        Initializes the Gemini transport.

        Args:
            aclient: The initialized Google GenAI async client (``Client(...).aio``).
            model_name: The identifier for the Gemini model to use (e.g., 'gemini-1.5-flash-latest').
            registry: Registry whose tools are offered to the model.
            temp: The temperature for text generation, controlling randomness.
            max_tokens: The maximum number of tokens to generate in the response.
            timeout: Seconds to wait for a single model call.
            safety_settings: Overrides the default harm-category thresholds.
        """
        super().__init__(registry=registry, timeout=timeout)
        self.model: str = model_name
        self.client: AsyncClient = aclient

        tools_config: Optional[List[types.Tool]] = None
        if registry is not None:
            tool_obj = registry.tool_object
            if tool_obj:
                tools_config = [tool_obj]
                logger.info(f"Registered {len(registry.tools)} tools for Gemini model '{model_name}'.")

        self.config = types.GenerateContentConfig(
            temperature=temp,
            max_output_tokens=max_tokens,
            tools=tools_config,  # type: ignore[arg-type]
            safety_settings=DEFAULT_SAFETY_SETTINGS if safety_settings is None else safety_settings,
            automatic_function_calling=types.AutomaticFunctionCallingConfig(disable=True),
        )
        logger.info(f"Initialized GeminiTransport with model='{model_name}', temp={temp}, max_tokens={max_tokens}")

    async def _generate_impl(self, history: Sequence[BaseMessage]) -> ModelResponse[GenerateContentResponse]:
        system_instruction, contents = self._convert_history(history)
        config = self.config.model_copy(update={"system_instruction": system_instruction})

        logger.debug(f"Sending {len(contents)} content item(s) to Gemini model '{self.model}'.")
        response = await self.client.models.generate_content(model=self.model, contents=contents, config=config)
        return self._parse_response(response)

    @staticmethod
    def _convert_history(history: Sequence[BaseMessage]) -> Tuple[Optional[str], List[types.Content]]:
        """
        Converts the provider-agnostic history to Gemini ``Content`` objects.

        Args:
            history: The full conversation.

        Returns:
            The system instruction (or None) and the list of contents.
        """
        instructions: List[str] = []
        contents: List[types.Content] = []
        for msg in history:
            if isinstance(msg, SystemMessage):
                instructions.append(msg.content)
            elif isinstance(msg, UserMessage):
                contents.append(types.Content(role="user", parts=[types.Part(text=msg.content)]))
            elif isinstance(msg, AssistantMessage):
                contents.append(types.Content(role="model", parts=[types.Part(text=msg.content)]))
            elif isinstance(msg, ToolCallMessage):
                parts = [
                    types.Part(
                        function_call=types.FunctionCall(
                            name=call.name,
                            args=_as_dict(call.arguments),
                            id=None if is_local_call_id(call.call_id) else call.call_id,
                        )
                    )
                    for call in msg.tool_calls
                ]
                contents.append(types.Content(role="model", parts=parts))
            elif isinstance(msg, ToolResultMessage):
                parts = [
                    types.Part(
                        function_response=types.FunctionResponse(
                            name=result.name,
                            response=result.response,
                            id=None if is_local_call_id(result.call_id) else result.call_id,
                        )
                    )
                    for result in msg.results
                ]
                contents.append(types.Content(role="user", parts=parts))
        return ("\n\n".join(instructions) or None), contents

    @staticmethod
    def _parse_response(response: GenerateContentResponse) -> ModelResponse[GenerateContentResponse]:
        """
        Turns a Gemini response into text or tool calls.

        Raises:
            MalformedModelResponseError: If the response was blocked or is empty.
        """
        candidates = response.candidates or []
        if not candidates:
            feedback = getattr(response, "prompt_feedback", None)
            reason = getattr(feedback, "block_reason", None) if feedback else None
            detail = f" (blocked: {reason})" if reason else ""
            raise MalformedModelResponseError(f"Gemini returned no candidates{detail}.")

        content = candidates[0].content
        parts = (content.parts if content else None) or []

        tool_calls = []
        for part in parts:
            function_call = part.function_call
            if function_call is None:
                continue
            if not function_call.name:
                raise MalformedModelResponseError("Gemini returned a function call without a name.")
            if function_call.id:
                tool_calls.append(ToolCallRequest(name=function_call.name, arguments=function_call.args, call_id=function_call.id))
            else:
                tool_calls.append(ToolCallRequest(name=function_call.name, arguments=function_call.args))

        text = "".join(part.text for part in parts if part.text and not part.thought)
        return ModelResponse.from_parts(text=text, tool_calls=tool_calls, raw=response)


def _as_dict(arguments: Any) -> Dict[str, Any]:
    """Gemini wants function call args as an object; other providers may have produced JSON text."""
    if arguments is None:
        return {}
    if isinstance(arguments, dict):
        return arguments
    if isinstance(arguments, str):
        try:
            parsed = json.loads(arguments)
        except json.JSONDecodeError:
            return {"raw": arguments}
        return parsed if isinstance(parsed, dict) else {"value": parsed}
    return dict(arguments)
