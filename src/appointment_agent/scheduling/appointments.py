"""In-memory appointment book exposed to the model as tools.

Datetimes cross the tool boundary as ISO 8601 strings in UTC
(``2024-07-15T10:00:00Z``). Storage is process-local.
"""

import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Annotated, Dict, List, Tuple

from pydantic import Field

from ..llm_core import ToolExecutionError, ToolRegistry, get_logger

logger = get_logger(__name__)

BUSINESS_HOURS: Tuple[int, int] = (9, 17)

APPOINTMENT_TOOL_NAMES: Tuple[str, ...] = (
    "check_appointment_availability",
    "schedule_appointment",
    "delete_appointment",
)

IsoDatetime = Annotated[
    str,
    Field(description="The date and time in ISO 8601 format, UTC timezone (e.g., '2024-07-15T10:00:00Z')."),
]


@dataclass(frozen=True)
class Appointment:
    start: datetime
    name: str
    email: str


def parse_utc(value: str) -> datetime:
    """Parse an ISO 8601 datetime and normalize it to UTC.

    Naive values are taken to be UTC already.

    Raises:
        ValueError: If the string is not an ISO 8601 datetime.
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValueError(f"'{value}' is not an ISO 8601 datetime such as '2024-07-15T10:00:00Z'.") from None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class AppointmentBook:
    """Holds booked slots and implements the three scheduling tools.

    A slot is free when its UTC hour lies within business hours (9 to 17, both
    inclusive) and nobody has booked it yet.
    """

    def __init__(self, business_hours: Tuple[int, int] = BUSINESS_HOURS) -> None:
        self.business_hours = business_hours
        self._appointments: Dict[datetime, Appointment] = {}
        self._lock = threading.Lock()

    @property
    def appointments(self) -> List[Appointment]:
        with self._lock:
            return sorted(self._appointments.values(), key=lambda a: a.start)

    def _within_business_hours(self, start: datetime) -> bool:
        opening, closing = self.business_hours
        return opening <= start.hour <= closing

    def check_appointment_availability(self, datetime: IsoDatetime) -> bool:
        """Checks if a specific date and time is available for an appointment. Datetime should be in ISO 8601 format, UTC timezone."""
        start = parse_utc(datetime)
        if not self._within_business_hours(start):
            logger.info(f"{start.isoformat()} is outside business hours.")
            return False
        with self._lock:
            available = start not in self._appointments
        logger.info(f"{start.isoformat()} available: {available}")
        return available

    def schedule_appointment(
        self,
        datetime: IsoDatetime,
        name: Annotated[str, Field(description="Name of the person for the appointment.")],
        email: Annotated[str, Field(description="Email address of the person.")],
    ) -> bool:
        """Schedules an appointment for a given date/time, name, and email. Datetime should be in ISO 8601 format, UTC timezone."""
        start = parse_utc(datetime)
        if not self._within_business_hours(start):
            raise ToolExecutionError(f"{start.isoformat()} is outside business hours.")
        with self._lock:
            if start in self._appointments:
                raise ToolExecutionError(f"{start.isoformat()} is already booked.")
            self._appointments[start] = Appointment(start=start, name=name, email=email)
        logger.info(f"Scheduled appointment at {start.isoformat()} for {name}.")
        return True

    def delete_appointment(
        self,
        datetime: IsoDatetime,
        name: Annotated[str, Field(description="Name of the person whose appointment is to be deleted.")],
        email: Annotated[str, Field(description="Email address of the person.")],
    ) -> bool:
        """Deletes an appointment for a given date/time, name, and email. Datetime should be in ISO 8601 format, UTC timezone."""
        start = parse_utc(datetime)
        with self._lock:
            booked = self._appointments.get(start)
            if booked is None:
                raise ToolExecutionError(f"No appointment found at {start.isoformat()}.")
            if booked.name != name or booked.email != email:
                raise ToolExecutionError(f"The appointment at {start.isoformat()} was booked under a different name or email.")
            del self._appointments[start]
        logger.info(f"Deleted appointment at {start.isoformat()} for {name}.")
        return True


def register_appointment_tools(registry: ToolRegistry, book: AppointmentBook) -> ToolRegistry:
    """Register the appointment tools of ``book`` and check the catalog is complete."""
    registry.register(book.check_appointment_availability)
    registry.register(book.schedule_appointment)
    registry.register(book.delete_appointment)
    registry.assert_catalog(APPOINTMENT_TOOL_NAMES)
    return registry
