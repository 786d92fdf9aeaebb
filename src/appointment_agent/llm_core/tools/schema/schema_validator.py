from typing import Any, Dict, Set

from ...exceptions import ToolValidationError
from ...logger import get_logger

logger = get_logger(__name__)

_METADATA_KEYS = ("$defs", "$schema", "$id", "title", "definitions")


class SchemaValidator:
    """
    Helper class for validating and sanitizing JSON schemas derived from tool signatures.
    """

    @staticmethod
    def assert_no_recursive_refs(schema: Dict[str, Any]) -> None:
        """
        Checks if the schema contains recursive references by traversing the graph.

        Args:
            schema: The JSON schema to check.

        Raises:
            ToolValidationError: If a recursive reference is found.
        """
        defs = schema.get("$defs", {}) or schema.get("definitions", {})

        def check(node: Any, path: Set[str]) -> None:
            if isinstance(node, dict):
                ref = node.get("$ref")
                if ref is not None:
                    if ref in path:
                        msg = (
                            f"Recursive structure detected: {ref}. "
                            "Recursive structures are not allowed in tool inputs."
                        )
                        logger.error(msg)
                        raise ToolValidationError(msg)

                    # e.g. #/$defs/Attendee
                    def_name = ref.rsplit("/", 1)[-1]
                    if ref.startswith("#") and def_name in defs:
                        check(defs[def_name], path | {ref})
                    return

                for value in node.values():
                    check(value, path)
            elif isinstance(node, list):
                for item in node:
                    check(item, path)

        check(schema, set())

    @staticmethod
    def sanitize_schema(schema: Any) -> Any:
        """
        Cleans up the schema for LLM providers.

        Removes metadata keys ($defs, $schema, $id, title), collapses ``Optional[X]``
        (``anyOf`` with null) into ``X``, closes objects with ``additionalProperties: false``
        and recurses into nested objects and lists.

        Args:
            schema: The JSON schema to sanitize.

        Returns:
            The sanitized schema.
        """
        if not isinstance(schema, dict):
            return schema

        new_schema = {k: v for k, v in schema.items() if k not in _METADATA_KEYS}

        any_of = new_schema.get("anyOf")
        if isinstance(any_of, list):
            non_null = [x for x in any_of if not (isinstance(x, dict) and x.get("type") == "null")]
            if len(non_null) == 1 and isinstance(non_null[0], dict):
                merged = dict(non_null[0])
                # Keep the parent's description and default
                for key in ("description", "default"):
                    if key in new_schema:
                        merged[key] = new_schema[key]
                return SchemaValidator.sanitize_schema(merged)

        if new_schema.get("type") == "object":
            new_schema.setdefault("additionalProperties", False)

        for key, value in new_schema.items():
            if key == "properties" and isinstance(value, dict):
                # Property names are data, not schema keywords
                new_schema[key] = {name: SchemaValidator.sanitize_schema(prop) for name, prop in value.items()}
            elif isinstance(value, dict):
                new_schema[key] = SchemaValidator.sanitize_schema(value)
            elif isinstance(value, list):
                new_schema[key] = [SchemaValidator.sanitize_schema(item) for item in value]

        return new_schema
