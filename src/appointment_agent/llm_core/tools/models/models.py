from typing import Optional, Any, Callable, Type
from pydantic import BaseModel, ConfigDict


class ToolDefinition(BaseModel):
    """
    Represents the definition of a tool that can be registered with an LLM.

    Attributes:
        name: The unique name of the tool.
        description: A brief description of what the tool does.
        func: The callable Python function (sync or async) that implements the tool's logic.
        parameters: A JSON schema defining the input parameters for the tool's function.
        args_model: Optional Pydantic model used for validating and coercing arguments.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    func: Callable
    parameters: Optional[Any] = None
    args_model: Optional[Type[BaseModel]] = None
