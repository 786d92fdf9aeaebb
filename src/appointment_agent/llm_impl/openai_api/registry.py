"""Render registered tools as OpenAI chat-completions tool definitions."""

from typing import Any, Dict, List, Optional

from ...llm_core.tools.registry import ToolRegistry

EMPTY_PARAMETERS: Dict[str, Any] = {"type": "object", "properties": {}}


class OpenAIToolRegistry(ToolRegistry):
    """
    A specialized ToolRegistry for OpenAI-compatible chat completion APIs.
    """

    @property
    def tool_object(self) -> Optional[List[Dict[str, Any]]]:
        """
        Generates the ``tools`` list for ``chat.completions.create``.

        Returns:
            A list of tool dictionaries, or None if no tools are registered.
        """
        if not self.tools:
            return None

        return [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    # Parameters are required even when a tool takes none
                    "parameters": tool.parameters or dict(EMPTY_PARAMETERS),
                },
            }
            for tool in self.tools.values()
        ]
