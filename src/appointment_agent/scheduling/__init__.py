"""Appointment scheduling tools and persona."""

from .appointments import (
    APPOINTMENT_TOOL_NAMES,
    Appointment,
    AppointmentBook,
    parse_utc,
    register_appointment_tools,
)
from .prompts import (
    DEFAULT_OWNER_TIMEZONE,
    GREETING,
    FAREWELL,
    build_system_prompt,
    owner_now,
)

__all__ = [
    "APPOINTMENT_TOOL_NAMES",
    "Appointment",
    "AppointmentBook",
    "parse_utc",
    "register_appointment_tools",
    "DEFAULT_OWNER_TIMEZONE",
    "GREETING",
    "FAREWELL",
    "build_system_prompt",
    "owner_now",
]
