from dataclasses import dataclass
from typing import Tuple

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday")


@dataclass(frozen=True)
class WorkingHours:
    """
    The window in which slots may be proposed.

    Attributes:
        days: Working days in enumeration order
        day_start: First minute of the working day (540 = 09:00)
        day_end: End of the working day, exclusive (1020 = 17:00)
        step: Distance in minutes between two candidate slot starts
    """
    days: Tuple[str, ...] = WEEKDAYS
    day_start: int = 9 * 60
    day_end: int = 17 * 60
    step: int = 30
