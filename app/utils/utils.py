from datetime import datetime
from typing import Any, Dict, Iterator, List, Sequence

from app.errors import ValidationError
from app.models.time_slot import TimeSlot, TimeSpan
from app.models.working_hours import WEEKDAYS, WorkingHours

COLOR_PALETTE = [
    '#be123c', '#be185d', '#a21caf', '#7e22ce', '#6d28d9',
    '#5b21b6', '#4c1d95', '#1e3a8a', '#1e40af', '#1d4ed8',
    '#0ea5e9', '#06b6d4', '#0d9488', '#059669', '#10b981',
    '#16a34a', '#65a30d', '#ca8a04', '#d97706', '#ea580c',
]


def parse_time(value: str, field: str = "time") -> int:
    """
    Converts '08:30' to minutes from midnight.

    Args:
        value: Time in 24-hour HH:MM format
        field: Name of the input field, reported back on error

    Returns:
        Minutes from midnight

    Raises:
        ValidationError: If the value is not a valid HH:MM time
    """
    try:
        t = datetime.strptime(str(value).strip(), "%H:%M")
    except ValueError:
        raise ValidationError(f"Invalid time {value!r}, expected HH:MM", field=field)
    return t.hour * 60 + t.minute


def format_time(minutes: int) -> str:
    """Converts minutes from midnight back to 'HH:MM'."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def normalize_day(value: str, field: str = "day") -> str:
    """Returns the canonical weekday name, accepting any casing."""
    day = str(value or "").strip().capitalize()
    if day not in WEEKDAYS:
        raise ValidationError(
            f"Invalid day {value!r}, expected one of {', '.join(WEEKDAYS)}", field=field
        )
    return day


def to_span(day: str, start_time: str, end_time: str) -> TimeSpan:
    """
    Builds a TimeSpan from a day and two HH:MM strings.

    Raises:
        ValidationError: If the day or times are malformed or start is not before end
    """
    day = normalize_day(day)
    start = parse_time(start_time, field="startTime")
    end = parse_time(end_time, field="endTime")
    if start >= end:
        raise ValidationError(
            f"Start time {start_time} must be before end time {end_time}", field="endTime"
        )
    return TimeSpan(day=day, start=start, end=end)


def working_hours_from_config(config: Dict[str, Any]) -> WorkingHours:
    """
    Builds the working hours window from the schedule settings.

    Args:
        config: Output of config.settings.get_schedule_config()
    """
    day_start = parse_time(config["day_start"], field="WORK_DAY_START")
    day_end = parse_time(config["day_end"], field="WORK_DAY_END")
    step = int(config["slot_step_minutes"])
    if day_start >= day_end:
        raise ValidationError("Working day must start before it ends", field="WORK_DAY_END")
    if step <= 0:
        raise ValidationError("Slot step must be a positive number of minutes",
                              field="SLOT_STEP_MINUTES")
    return WorkingHours(day_start=day_start, day_end=day_end, step=step)


def candidate_spans(hours: WorkingHours, duration: int) -> Iterator[TimeSpan]:
    """
    Yields every aligned slot of the given duration inside working hours.

    Order is day ascending (Monday first), then start time ascending.
    A slot never ends after the working day ends.

    Args:
        hours: Working hours window
        duration: Slot length in minutes
    """
    if duration <= 0:
        raise ValidationError("Duration must be a positive number of minutes", field="duration")

    for day in hours.days:
        start = hours.day_start
        while start + duration <= hours.day_end:
            yield TimeSpan(day=day, start=start, end=start + duration)
            start += hours.step


def span_to_slot(span: TimeSpan) -> TimeSlot:
    return TimeSlot(day=span.day, start_time=format_time(span.start),
                    end_time=format_time(span.end))


def subject_color(subject: str, subjects: Sequence[str]) -> str:
    """
    Returns the display colour of a subject.

    Colours follow the sorted order of the distinct subjects, so the same set
    of subjects always renders the same way.

    Args:
        subject: Subject to colour
        subjects: All subjects on display
    """
    ordered: List[str] = sorted(set(subjects) | {subject})
    return COLOR_PALETTE[ordered.index(subject) % len(COLOR_PALETTE)]
