"""Render registered tools as a Gemini function-declaration catalog."""

from typing import Optional

from google.genai import types

from ...llm_core.tools.registry import ToolRegistry
from .schema_sanitizer import sanitize


class GeminiToolRegistry(ToolRegistry):
    """
    A specialized ToolRegistry for Google Gemini models.

    Provides the ``types.Tool`` object that carries every registered function
    declaration to the Gemini API.
    """

    @property
    def tool_object(self) -> Optional[types.Tool]:
        """
        Generates a `types.Tool` object suitable for the Gemini API.

        Returns:
            A `types.Tool` object containing all registered function declarations,
            or None if no tools are registered.
        """
        if not self.tools:
            return None

        declarations = []
        for tool in self.tools.values():
            if tool.parameters and tool.parameters.get("properties"):
                declarations.append(
                    types.FunctionDeclaration(
                        name=tool.name,
                        description=tool.description,
                        parameters=sanitize(tool.parameters),  # type: ignore[arg-type]
                    )
                )
            else:
                declarations.append(types.FunctionDeclaration(name=tool.name, description=tool.description))

        return types.Tool(function_declarations=declarations)
