from dataclasses import dataclass


@dataclass(frozen=True)
class TimeSpan:
    """
    A half-open range of minutes on one weekday.

    Attributes:
        day: Day of the week (Monday..Friday)
        start: Start, in minutes from midnight (e.g., 540 for 09:00)
        end: End, in minutes from midnight
    """
    day: str
    start: int
    end: int


@dataclass(frozen=True)
class TimeSlot:
    """
    Represents a candidate or free slot in the weekly schedule.

    Always falls inside working hours and never spans a day boundary.

    Attributes:
        day: Day of the week (Monday, Tuesday, Wednesday, Thursday, Friday)
        start_time: Start time in HH:MM format (e.g., "11:30")
        end_time: End time in HH:MM format (e.g., "13:00")
    """
    day: str
    start_time: str
    end_time: str

    def as_dict(self):
        return {
            "dayOfWeek": self.day,
            "startTime": self.start_time,
            "endTime": self.end_time,
        }
