"""Persona instructions for the appointment scheduling agent."""

from datetime import datetime
from zoneinfo import ZoneInfo

DEFAULT_OWNER_TIMEZONE = "Asia/Kuala_Lumpur"
GREETING = "Hello! How can I help you schedule an appointment today?"
FAREWELL = "Goodbye!"

SYSTEM_PROMPT_TEMPLATE = """\
You are an appointment scheduler AI agent.
You have the ability to use tools to check availability, schedule, and delete appointments.
Chat with users who want to schedule an appointment with your owner.
Ask if they have any choice for the appointment time.
You must be able to understand that users might be from a different time zone.
Always use their timezone while chatting about times and dates to the user.
Before scheduling the appointment, you must ask for their name and email.
Your owner is in {timezone_label}.
The current time and date for your owner is {owner_now}.

Available tools/functions:
- check_appointment_availability: Checks if a datetime is available. Requires 'datetime' (ISO 8601 UTC).
- schedule_appointment: Schedules an appointment. Requires 'datetime' (ISO 8601 UTC), 'name', and 'email'.
- delete_appointment: Deletes an appointment. Requires 'datetime' (ISO 8601 UTC), 'name', and 'email'.

Always convert user-mentioned times to UTC ISO 8601 format before calling a function. \
For example, if the user says "tomorrow at 3 PM EST" and today is 2024-07-15, and EST is UTC-5, \
you should convert this to something like "2024-07-16T19:00:00Z" for the function call.
Be polite and helpful.
"""


def owner_now(timezone_name: str = DEFAULT_OWNER_TIMEZONE) -> datetime:
    """Current time in the owner's timezone."""
    return datetime.now(ZoneInfo(timezone_name))


def format_owner_time(moment: datetime) -> str:
    """Format like ``July 15, 2024 at 6:05:09 PM``."""
    hour = moment.hour % 12 or 12
    meridiem = "AM" if moment.hour < 12 else "PM"
    return f"{moment:%B} {moment.day}, {moment.year} at {hour}:{moment:%M:%S} {meridiem}"


def timezone_label(moment: datetime, timezone_name: str) -> str:
    """Describe a timezone as ``Kuala Lumpur timezone (UTC+08:00)``."""
    offset = moment.strftime("%z")
    offset = f"{offset[:3]}:{offset[3:]}" if offset else "+00:00"
    city = timezone_name.rsplit("/", 1)[-1].replace("_", " ")
    return f"{city} timezone (UTC{offset})"


def build_system_prompt(timezone_name: str = DEFAULT_OWNER_TIMEZONE, now: datetime | None = None) -> str:
    """Render the seed instructions for a new conversation.

    Args:
        timezone_name: IANA name of the owner's timezone.
        now: Owner-local time to embed; defaults to the current time.
    """
    moment = now if now is not None else owner_now(timezone_name)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=ZoneInfo(timezone_name))
    return SYSTEM_PROMPT_TEMPLATE.format(
        timezone_label=timezone_label(moment, timezone_name),
        owner_now=format_owner_time(moment),
    )
