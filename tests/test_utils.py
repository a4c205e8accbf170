import pytest

from app.errors import ValidationError
from app.models.working_hours import WEEKDAYS, WorkingHours
from app.utils.utils import (
    candidate_spans,
    format_time,
    normalize_day,
    parse_time,
    subject_color,
    to_span,
    working_hours_from_config,
)


def test_parse_and_format_time():
    assert parse_time("09:00") == 540
    assert parse_time("16:30") == 990
    assert format_time(630) == "10:30"
    assert format_time(parse_time("07:05")) == "07:05"


@pytest.mark.parametrize("value", ["9am", "25:00", "12:60", "", None])
def test_parse_time_rejects_malformed_input(value):
    with pytest.raises(ValidationError):
        parse_time(value)


def test_normalize_day():
    assert normalize_day("monday") == "Monday"
    assert normalize_day(" FRIDAY ") == "Friday"
    with pytest.raises(ValidationError) as exc:
        normalize_day("Saturday")
    assert exc.value.field == "day"


def test_to_span_requires_start_before_end():
    with pytest.raises(ValidationError):
        to_span("Monday", "10:00", "10:00")
    with pytest.raises(ValidationError):
        to_span("Monday", "11:00", "10:00")


@pytest.mark.parametrize("duration", [60, 90])
def test_candidate_spans_stay_inside_working_hours(duration):
    spans = list(candidate_spans(WorkingHours(), duration))

    assert spans
    for span in spans:
        assert span.day in WEEKDAYS
        assert span.start >= 540
        assert span.end <= 1020
        assert span.end - span.start == duration


def test_candidate_spans_order_and_count():
    spans = list(candidate_spans(WorkingHours(), 90))

    # 09:00 .. 15:30 every half hour
    assert len(spans) == 14 * 5
    assert [s.day for s in spans[:14]] == ["Monday"] * 14
    assert spans[0].start == 540
    assert spans[13].start == 930
    assert spans[14].day == "Tuesday"


def test_candidate_spans_hourly_step():
    spans = list(candidate_spans(WorkingHours(step=60), 60))

    assert [format_time(s.start) for s in spans if s.day == "Monday"] == [
        "09:00", "10:00", "11:00", "12:00", "13:00", "14:00", "15:00", "16:00"
    ]


def test_candidate_spans_rejects_non_positive_duration():
    with pytest.raises(ValidationError):
        list(candidate_spans(WorkingHours(), 0))


def test_working_hours_from_config():
    hours = working_hours_from_config({
        "day_start": "08:00", "day_end": "18:00", "slot_step_minutes": 60,
    })

    assert hours == WorkingHours(day_start=480, day_end=1080, step=60)

    with pytest.raises(ValidationError):
        working_hours_from_config({"day_start": "17:00", "day_end": "09:00", "slot_step_minutes": 30})


def test_subject_color_depends_only_on_the_subject_set():
    subjects = ["Physics", "Algorithms", "History"]

    assert subject_color("Physics", subjects) == subject_color("Physics", list(reversed(subjects)))
    assert subject_color("Algorithms", subjects) != subject_color("History", subjects)
