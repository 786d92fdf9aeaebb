"""
Runtime settings for the appointment agent.

Values come from environment variables (a ``.env`` file is loaded first) with
defaults suitable for a local terminal session.
"""

import os
from typing import Literal, Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv, find_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from .llm_core import ConfigurationError
from .llm_core.orchestration import DEFAULT_MAX_TOOL_CYCLES
from .scheduling import DEFAULT_OWNER_TIMEZONE

DEFAULT_MODELS = {
    "gemini": "gemini-1.5-flash-latest",
    "openai": "gpt-4o-mini",
}

API_KEY_VARIABLES = {
    "gemini": ("GOOGLE_API_KEY", "GEMINI_API_KEY"),
    "openai": ("OPENAI_API_KEY",),
}


class AgentConfig(BaseModel):
    """Settings for one agent process.

    Attributes:
        provider: Which model provider to talk to.
        model_name: Provider model identifier.
        api_key: Provider credential.
        base_url: Optional endpoint override for OpenAI-compatible servers.
        temperature: Sampling temperature.
        max_tokens: Maximum tokens per model reply.
        max_tool_cycles: Tool batches allowed per user turn.
        tool_timeout: Seconds a single tool call may run.
        transport_timeout: Seconds a single model call may take.
        owner_timezone: IANA timezone of the calendar owner.
        quit_command: Input that ends the session (case-insensitive).
        log_level: Level for the agent's log output.
    """

    provider: Literal["gemini", "openai"] = "gemini"
    model_name: str = DEFAULT_MODELS["gemini"]
    api_key: str = Field(min_length=1, repr=False)
    base_url: Optional[str] = None
    temperature: float = Field(default=1.0, ge=0.0, le=2.0)
    max_tokens: int = Field(default=3000, gt=0)
    max_tool_cycles: int = Field(default=DEFAULT_MAX_TOOL_CYCLES, ge=1)
    tool_timeout: float = Field(default=180.0, gt=0)
    transport_timeout: float = Field(default=60.0, gt=0)
    owner_timezone: str = DEFAULT_OWNER_TIMEZONE
    quit_command: str = "quit"
    log_level: str = "WARNING"

    @field_validator("owner_timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone '{value}'.") from e
        return value

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, load_env_file: bool = True) -> "AgentConfig":
        """Build settings from environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``.
            load_env_file: Load a ``.env`` file into ``os.environ`` first.

        Raises:
            ConfigurationError: If the API key is missing or a value is invalid.
        """
        if load_env_file:
            env_file = find_dotenv(usecwd=True)
            if env_file:
                load_dotenv(env_file)
        env = os.environ if environ is None else environ

        provider = env.get("AGENT_PROVIDER", "gemini").strip().lower()
        if provider not in API_KEY_VARIABLES:
            raise ConfigurationError(f"Unknown AGENT_PROVIDER '{provider}'. Use one of: {', '.join(API_KEY_VARIABLES)}.")

        key_names = API_KEY_VARIABLES[provider]
        api_key = next((env[name] for name in key_names if env.get(name)), None)
        if not api_key:
            raise ConfigurationError(f"{' or '.join(key_names)} is not defined. Please check your .env file.")

        values = {
            "provider": provider,
            "model_name": env.get("AGENT_MODEL") or DEFAULT_MODELS[provider],
            "api_key": api_key,
            "base_url": env.get("OPENAI_BASE_URL") or None,
            "temperature": env.get("AGENT_TEMPERATURE"),
            "max_tokens": env.get("AGENT_MAX_TOKENS"),
            "max_tool_cycles": env.get("AGENT_MAX_TOOL_CYCLES"),
            "tool_timeout": env.get("AGENT_TOOL_TIMEOUT"),
            "transport_timeout": env.get("AGENT_TRANSPORT_TIMEOUT"),
            "owner_timezone": env.get("AGENT_OWNER_TIMEZONE"),
            "quit_command": env.get("AGENT_QUIT_COMMAND"),
            "log_level": env.get("AGENT_LOG_LEVEL"),
        }
        try:
            return cls(**{name: value for name, value in values.items() if value is not None})
        except ValidationError as e:
            raise ConfigurationError(f"Invalid agent configuration: {e}") from e
