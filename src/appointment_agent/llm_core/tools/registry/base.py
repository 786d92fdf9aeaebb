"""Tool registry abstraction and helper utilities."""

import inspect
from abc import abstractmethod, ABC
from typing import Callable, Dict, Any, Iterable, List, Union, Optional, cast

import jsonref  # type: ignore
from pydantic import create_model

from ..models import ToolDefinition
from ..schema import SchemaValidator, ToolParameterFactory
from ...exceptions import ToolNotFoundError, ToolRegistrationError, ToolValidationError
from ...logger import get_logger

logger = get_logger(__name__)


class ToolRegistry(ABC):
    """
    A central registry to manage and access all available LLM tools.

    This class holds the function declarations to be sent to the LLM and
    maps function names to their actual Python implementations. Subclasses
    render the registered definitions into a provider-specific catalog via
    :attr:`tool_object`.
    """

    def __init__(self) -> None:
        """Initialize the ToolRegistry."""
        self.tools: Dict[str, ToolDefinition] = {}

    def register(
        self,
        name_or_tool: Union[str, ToolDefinition, Callable],
        description: Optional[str] = None,
        func: Optional[Callable] = None,
        parameters: Optional[Any] = None,
    ) -> ToolDefinition:
        """
        Register a new tool for the LLM.

        A tool can be registered from a `ToolDefinition`, from its individual components
        (name, description, function, parameters), or from a documented callable whose
        schema is generated from its signature.

        Args:
            name_or_tool: Either a `ToolDefinition` object, the name of the tool (str), or a Callable.
            description: A brief description of what the tool does. Required if `name_or_tool` is a string and parameters are provided.
            func: The callable function implementing the tool's logic. Required if `name_or_tool` is a string.
            parameters: A JSON schema defining the tool's input parameters. If None, it will be inferred from `func`.

        Returns:
            The registered definition.

        Raises:
            ToolRegistrationError: If individual arguments are missing or if the tool already exists.
        """
        if isinstance(name_or_tool, ToolDefinition):
            tool = name_or_tool
        elif callable(name_or_tool):
            tool = self._generate_tool_definition(name_or_tool, description=description)
        else:
            if func is None:
                raise ToolRegistrationError("If passing name as string, func is required.")

            if parameters is None:
                tool = self._generate_tool_definition(func, name=name_or_tool, description=description)
            else:
                if description is None:
                    raise ToolRegistrationError("If passing name and parameters, description is required.")
                tool = ToolDefinition(name=name_or_tool, description=description, func=func, parameters=parameters)

        if tool.name in self.tools:
            msg = f"Tool '{tool.name}' is already registered."
            logger.error(msg)
            raise ToolRegistrationError(msg)

        self.tools[tool.name] = tool
        logger.info(f"Successfully registered tool: '{tool.name}'")
        return tool

    def unregister(self, tool_name: str) -> None:
        """Unregister a tool from the registry.

        Raises:
            ToolNotFoundError: If the tool does not exist in the registry.
        """
        if tool_name not in self.tools:
            raise ToolNotFoundError(f"Tool '{tool_name}' not found in the registry.")
        del self.tools[tool_name]
        logger.info(f"Successfully unregistered tool: '{tool_name}'")

    def lookup(self, tool_name: str) -> ToolDefinition:
        """Resolve a tool by name.

        Args:
            tool_name: The name the model asked for.

        Returns:
            The matching definition.

        Raises:
            ToolNotFoundError: If the model referenced a tool outside the registry.
        """
        try:
            return self.tools[tool_name]
        except KeyError:
            raise ToolNotFoundError(f"Tool '{tool_name}' not found in registry.") from None

    def tool(self, func: Callable) -> Callable:
        """A decorator to turn a function into an LLM tool.

        Args:
            func: The function to decorate.

        Returns:
            The original function, after registering it as a tool.
        """
        self.register(func)
        return func

    def assert_catalog(self, expected_names: Iterable[str]) -> None:
        """Check at startup that a declared catalog and the registry agree.

        Args:
            expected_names: Tool names the model will be told about.

        Raises:
            ToolRegistrationError: If either side has names the other lacks.
        """
        expected = set(expected_names)
        registered = set(self.tools)
        missing = sorted(expected - registered)
        extra = sorted(registered - expected)
        if missing or extra:
            msg = f"Tool catalog mismatch. Not registered: {missing}. Not declared: {extra}."
            logger.error(msg)
            raise ToolRegistrationError(msg)

    @property
    def names(self) -> List[str]:
        return list(self.tools)

    def __contains__(self, tool_name: object) -> bool:
        return tool_name in self.tools

    def __len__(self) -> int:
        return len(self.tools)

    @property
    @abstractmethod
    def tool_object(self) -> Any:
        """Constructs the final Tool object specific to the LLM provider.

        Returns:
            The provider-specific tool representation, or None if nothing is registered.
        """
        pass

    def _generate_tool_definition(
        self, func: Callable, name: Optional[str] = None, description: Optional[str] = None
    ) -> ToolDefinition:
        """Generate a ToolDefinition from a callable function.

        Args:
            func: The function to generate a definition for.
            name: Optional name override for the tool.
            description: Optional description override for the tool.

        Returns:
            A ToolDefinition object containing the tool's metadata and schema.

        Raises:
            ToolValidationError: If the function is missing a docstring or parameter descriptions.
        """
        tool_name = name or func.__name__
        if description is None:
            description = self._get_docstring_from_func(func, tool_name)

        signature = inspect.signature(func)
        fields = self._build_fields(signature, tool_name)

        # create_model expects **field_definitions: Any
        args_model = create_model(f"{tool_name}Params", **cast(Dict[str, Any], fields))
        raw_schema = args_model.model_json_schema()
        SchemaValidator.assert_no_recursive_refs(raw_schema)

        # proxies=False ensures we get a plain dict back, not JsonRef objects
        parameters_schema = jsonref.replace_refs(raw_schema, proxies=False)
        parameters_schema = SchemaValidator.sanitize_schema(parameters_schema)

        return ToolDefinition(
            name=tool_name,
            description=description,
            func=func,
            parameters=parameters_schema,
            args_model=args_model,
        )

    @staticmethod
    def _get_docstring_from_func(func: Callable, tool_name: str) -> str:
        doc = inspect.getdoc(func)
        if not doc:
            msg = f"Tool '{tool_name}' missing docstring. LLMs need a description of what the tool does."
            logger.error(msg)
            raise ToolValidationError(msg)
        return doc

    @staticmethod
    def _build_fields(signature: inspect.Signature, tool_name: str) -> Dict[str, Any]:
        fields: Dict[str, Any] = {}
        for param_name, param in signature.parameters.items():
            if param_name == "self":
                continue
            ft = ToolParameterFactory.build_field_tuple(param_name=param_name, param=param, tool_name=tool_name)
            fields[param_name] = (ft.annotation, ft.field)
        return fields
