"""Execute single tool calls and normalize their outcome into result envelopes."""

from __future__ import annotations

import asyncio
import inspect
import json
from typing import Any, Callable, Dict, Optional

from ...exceptions import ToolExecutionError, ToolNotFoundError, ToolValidationError
from ...logger import get_logger
from ..models import (
    ToolCallRequest,
    ToolCallResult,
    UNKNOWN_TOOL,
    TOOL_EXECUTION_ERROR,
    TOOL_VALIDATION_ERROR,
)
from ..registry import ToolRegistry

logger = get_logger(__name__)


class ToolExecutor:
    """Runs one requested tool and turns every outcome into a ``ToolCallResult``.

    Unknown tools, undecodable or invalid arguments, exceptions raised by the
    implementation and timeouts all become failure results so they can be
    reported back to the model. Only cancellation propagates.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        *,
        tool_timeout: float = 180.0,
        error_formatter: Optional[Callable[[str, Exception], str]] = None,
    ) -> None:
        """Initialize the executor.

        Args:
            registry: Tool registry used to resolve tool definitions.
            tool_timeout: Timeout in seconds for a single tool execution.
            error_formatter: Optional hook that turns an implementation error into the
                message sent to the model, e.g. to redact privileged details.
        """
        self._registry = registry
        self._tool_timeout = tool_timeout
        self._error_formatter = error_formatter or self._default_error_message

    async def execute(self, request: ToolCallRequest) -> ToolCallResult:
        """Execute a single tool call request.

        Args:
            request: The tool call request containing name, ID, and arguments.

        Returns:
            The result of the tool execution, including any errors.
        """
        logger.debug(f"Handling tool call: {request.name} (ID: {request.call_id})")

        try:
            tool_def = self._registry.lookup(request.name)
        except ToolNotFoundError as exc:
            logger.warning(f"Unknown tool requested by the model: {exc}")
            return ToolCallResult.failure(request, f"Unknown function requested by the model: {request.name}", UNKNOWN_TOOL)

        try:
            function_args = self._normalize_function_args(request.name, request.arguments)
            if tool_def.args_model:
                function_args = self._validate_args(tool_def.args_model, function_args)
        except ToolValidationError as exc:
            msg = str(exc)
            logger.warning(f"Invalid arguments for '{request.name}': {msg}")
            return ToolCallResult.failure(request, msg, TOOL_VALIDATION_ERROR)

        try:
            logger.info(f"Executing tool '{request.name}'...")
            payload = await self._execute_tool(tool_def.func, function_args)
        except Exception as exc:
            logger.warning(f"Error executing function '{request.name}': {exc} ({type(exc).__name__})")
            return ToolCallResult.failure(request, self._error_formatter(request.name, exc), TOOL_EXECUTION_ERROR)

        logger.info(f"Tool '{request.name}' executed successfully.")
        return ToolCallResult.success(request, payload)

    @staticmethod
    def _normalize_function_args(tool_name: str, raw_args: Any) -> Dict[str, Any]:
        """Normalize tool arguments into a dictionary.

        Handles JSON strings, mappings, or None values.

        Raises:
            ToolValidationError: If arguments cannot be parsed into an object.
        """
        if raw_args is None or raw_args == "":
            return {}

        if isinstance(raw_args, dict):
            return dict(raw_args)

        if isinstance(raw_args, str):
            try:
                parsed = json.loads(raw_args)
            except json.JSONDecodeError as exc:
                raise ToolValidationError(f"Failed to parse arguments for tool '{tool_name}': {exc}") from exc

            if parsed is None:
                return {}
            if not isinstance(parsed, dict):
                raise ToolValidationError(
                    f"Failed to parse arguments for tool '{tool_name}': arguments must decode to a JSON object."
                )
            return parsed

        try:
            return dict(raw_args)
        except (TypeError, ValueError) as exc:
            raise ToolValidationError(f"Failed to parse arguments for tool '{tool_name}': {exc}") from exc

    @staticmethod
    def _validate_args(args_model: Any, function_args: Dict[str, Any]) -> Dict[str, Any]:
        try:
            validated = args_model(**function_args)
        except Exception as exc:
            raise ToolValidationError(f"Argument validation failed: {exc}") from exc
        # Keep nested models as instances, the function signature expects them
        return {name: getattr(validated, name) for name in type(validated).model_fields}

    async def _execute_tool(self, tool_function: Callable, function_args: Dict[str, Any]) -> Any:
        """Execute the tool function, handling async/sync and timeouts.

        Raises:
            ToolExecutionError: If execution times out.
        """
        try:
            if inspect.iscoroutinefunction(tool_function):
                return await asyncio.wait_for(tool_function(**function_args), timeout=self._tool_timeout)

            result = await asyncio.wait_for(
                asyncio.to_thread(tool_function, **function_args),
                timeout=self._tool_timeout,
            )
            # Sync callables may still hand back an awaitable
            if inspect.isawaitable(result):
                result = await asyncio.wait_for(result, timeout=self._tool_timeout)
            return result
        except asyncio.TimeoutError as exc:
            raise ToolExecutionError(f"Tool execution timed out after {self._tool_timeout} seconds.") from exc

    @staticmethod
    def _default_error_message(tool_name: str, error: Exception) -> str:
        return f"Error executing function: {error}"
