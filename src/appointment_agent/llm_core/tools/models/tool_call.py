"""Data models for tool execution."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Optional

UNKNOWN_TOOL = "UnknownTool"
TOOL_VALIDATION_ERROR = "ToolValidationError"
TOOL_EXECUTION_ERROR = "ToolExecutionError"

LOCAL_CALL_ID_PREFIX = "local_"


def new_call_id() -> str:
    """Return a synthetic correlation id for a tool call the provider did not label."""
    return f"{LOCAL_CALL_ID_PREFIX}{uuid.uuid4().hex[:12]}"


def is_local_call_id(call_id: str) -> bool:
    """True for ids minted by :func:`new_call_id` rather than by a provider."""
    return call_id.startswith(LOCAL_CALL_ID_PREFIX)


@dataclass(frozen=True)
class ToolCallRequest:
    """Represents a normalized tool call request from an LLM response.

    ``arguments`` is whatever the provider produced (a mapping, a JSON string or None);
    the executor normalizes it. ``call_id`` distinguishes two calls to the same tool
    within one batch.
    """

    name: str
    arguments: Any = None
    call_id: str = field(default_factory=new_call_id)


@dataclass(frozen=True)
class ToolCallResult:
    """Represents the outcome of executing a tool call."""

    name: str
    call_id: str
    outcome: Literal["success", "failure"]
    payload: Any = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    @classmethod
    def success(cls, request: ToolCallRequest, payload: Any) -> "ToolCallResult":
        return cls(name=request.name, call_id=request.call_id, outcome="success", payload=payload)

    @classmethod
    def failure(cls, request: ToolCallRequest, message: str, error_type: str) -> "ToolCallResult":
        return cls(
            name=request.name,
            call_id=request.call_id,
            outcome="failure",
            error=message,
            error_type=error_type,
        )

    @property
    def ok(self) -> bool:
        return self.outcome == "success"

    @property
    def response(self) -> Dict[str, Any]:
        """The result as sent back to the model; the tool name is echoed for correlation."""
        if self.ok:
            return {"name": self.name, "content": self.payload}
        return {"name": self.name, "error": self.error}
