import pytest

from app.errors import NoSlotAvailable, NotFound, ValidationError
from app.models.lecture import CANCELED
from app.models.time_slot import TimeSlot
from app.models.working_hours import WEEKDAYS, WorkingHours
from app.services.scheduler import (
    can_enroll,
    find_available,
    find_reschedule_slots,
    first_free_slot,
    schedule_new,
)
from app.utils.utils import parse_time


def starts_on(slots, day):
    return [slot.start_time for slot in slots if slot.day == day]


def test_find_available_requires_room_or_instructor(make_snapshot):
    with pytest.raises(ValidationError):
        find_available(make_snapshot())


def test_find_available_unknown_room(make_snapshot):
    with pytest.raises(NotFound) as exc:
        find_available(make_snapshot(), room="Nowhere")
    assert exc.value.field == "classroom"


def test_find_available_room_busy_monday_morning(make_snapshot, make_lecture):
    snapshot = make_snapshot([make_lecture(day="Monday", start="10:00", end="11:30", room="Room101")])

    slots = find_available(snapshot, room="Room101")

    monday = starts_on(slots, "Monday")
    assert "09:00" in monday
    for busy in ("09:30", "10:00", "10:30", "11:00"):
        assert busy not in monday
    assert monday[1:] == [
        "11:30", "12:00", "12:30", "13:00", "13:30", "14:00",
        "14:30", "15:00", "15:30", "16:00",
    ]
    for day in WEEKDAYS[1:]:
        assert len(starts_on(slots, day)) == 15
    assert all(parse_time(slot.end_time) - parse_time(slot.start_time) == 60
               for slot in slots)


def test_find_available_slots_stay_in_working_hours(make_snapshot, make_lecture):
    snapshot = make_snapshot([make_lecture(day="Thursday", start="13:00", end="14:30")])

    for slot in find_available(snapshot, instructor="T1"):
        assert slot.day in WEEKDAYS
        assert parse_time(slot.start_time) >= parse_time("09:00")
        assert parse_time(slot.end_time) <= parse_time("17:00")


def test_find_available_is_idempotent(make_snapshot, make_lecture):
    snapshot = make_snapshot([
        make_lecture(day="Monday", start="10:00", end="11:30"),
        make_lecture(day="Friday", start="14:00", end="15:30", room="Lab2"),
    ])

    first = find_available(snapshot, room="Room101", instructor="T1")
    second = find_available(snapshot, room="Room101", instructor="T1")

    assert first == second
    assert [s.as_dict() for s in first] == [s.as_dict() for s in second]


def test_find_available_combines_room_and_instructor(make_snapshot, make_lecture):
    snapshot = make_snapshot([
        make_lecture(day="Monday", start="09:00", end="10:00", teacher="T1", room="Lab2"),
        make_lecture(day="Monday", start="10:00", end="11:00", teacher="T2", room="Room101"),
    ])

    monday = starts_on(find_available(snapshot, room="Room101", instructor="T1"), "Monday")

    assert monday[0] == "11:00"


def test_canceled_lecture_does_not_block_availability(make_snapshot, make_lecture):
    snapshot = make_snapshot([make_lecture(day="Monday", start="09:00", end="10:30", status=CANCELED)])

    assert starts_on(find_available(snapshot, room="Room101"), "Monday")[0] == "09:00"
    result = schedule_new(snapshot, "Physics", teacher="T1", classroom="Room101")
    assert result.slot == TimeSlot("Monday", "09:00", "10:30")


def test_schedule_new_first_slot_after_teacher_lecture(make_snapshot, make_lecture):
    snapshot = make_snapshot(
        [
            make_lecture(day="Monday", start="09:00", end="10:30", teacher="T", room="Lab2"),
            make_lecture(day="Wednesday", start="13:00", end="14:30", teacher="T", room="Lab2"),
        ],
        rooms=["R"],
    )

    result = schedule_new(snapshot, "Optics", teacher="T", classroom="R")

    assert result.success
    assert result.slot == TimeSlot(day="Monday", start_time="10:30", end_time="12:00")
    assert result.as_dict() == {
        "success": True, "dayOfWeek": "Monday", "startTime": "10:30", "endTime": "12:00",
    }


def test_schedule_new_reports_full_week(make_snapshot, make_lecture):
    lectures = [
        make_lecture(day=day, start="09:00", end="17:00", room="Lab2") for day in WEEKDAYS
    ]
    snapshot = make_snapshot(lectures, rooms=["Room101"])

    result = schedule_new(snapshot, "Optics", teacher="T1", classroom="Room101")

    assert not result.success
    assert result.slot is None
    assert "T1" in result.reason
    assert result.as_dict()["success"] is False


def test_schedule_new_validates_input(make_snapshot):
    snapshot = make_snapshot(teachers=["T1"], rooms=["Room101"])

    with pytest.raises(ValidationError):
        schedule_new(snapshot, "", teacher="T1", classroom="Room101")
    with pytest.raises(ValidationError):
        schedule_new(snapshot, "Optics", teacher="", classroom="Room101")
    with pytest.raises(NotFound):
        schedule_new(snapshot, "Optics", teacher="T9", classroom="Room101")


def test_first_free_slot_raises_when_nothing_fits(make_snapshot):
    snapshot = make_snapshot(teachers=["T1"])

    with pytest.raises(NoSlotAvailable):
        first_free_slot(snapshot, ["T1"], duration=9 * 60)


def test_first_free_slot_respects_custom_hours(make_snapshot):
    hours = WorkingHours(day_start=parse_time("08:00"), day_end=parse_time("12:00"), step=60)

    slot = first_free_slot(make_snapshot(teachers=["T1"]), ["T1"], duration=90, hours=hours)

    assert slot == TimeSlot("Monday", "08:00", "09:30")


def test_find_reschedule_slots_needs_every_student_free(make_snapshot, make_lecture):
    moved = make_lecture(day="Monday", start="09:00", end="10:30", teacher="T1", room="Room101",
                         students=["S1", "S2", "S3"], status=CANCELED, lecture_id="L-moved")
    clash = make_lecture(day="Tuesday", start="09:00", end="10:30", teacher="T9", room="Lab2",
                         students=["S2"])
    snapshot = make_snapshot([moved, clash])

    slots = find_reschedule_slots(snapshot, "T1", "Room101", ["S1", "S2", "S3"],
                                  exclude_lecture_id="L-moved")

    tuesday = starts_on(slots, "Tuesday")
    assert tuesday[0] == "10:30"
    for busy in ("09:00", "09:30", "10:00"):
        assert busy not in tuesday
    assert len(starts_on(slots, "Monday")) == 14
    assert len(slots) == 14 * 5 - 3


def test_find_reschedule_slots_ignores_students_not_listed(make_snapshot, make_lecture):
    clash = make_lecture(day="Tuesday", start="09:00", end="10:30", teacher="T9", room="Lab2",
                         students=["S4"])
    snapshot = make_snapshot([clash], teachers=["T1"], rooms=["Room101"], students=["S1"])

    slots = find_reschedule_slots(snapshot, "T1", "Room101", ["S1"])

    assert starts_on(slots, "Tuesday")[0] == "09:00"


def test_find_reschedule_slots_unknown_student(make_snapshot):
    snapshot = make_snapshot(teachers=["T1"], rooms=["Room101"])

    with pytest.raises(NotFound) as exc:
        find_reschedule_slots(snapshot, "T1", "Room101", ["ghost"])
    assert exc.value.field == "studentId"


def test_can_enroll(make_snapshot, make_lecture):
    enrolled = make_lecture(day="Wednesday", start="13:00", end="14:30", students=["S1"])
    clashing = make_lecture(day="Wednesday", start="14:00", end="15:30", teacher="T2",
                            room="Lab2", elective=True)
    fitting = make_lecture(day="Wednesday", start="14:30", end="16:00", teacher="T2",
                           room="Lab2", elective=True)
    snapshot = make_snapshot([enrolled, clashing, fitting])

    assert can_enroll(snapshot, "S1", clashing.id) is False
    assert can_enroll(snapshot, "S1", fitting.id) is True
    assert snapshot.lecture(fitting.id).student_ids == []
    assert snapshot.lecture(enrolled.id).student_ids == ["S1"]


def test_can_enroll_ignores_canceled_lectures(make_snapshot, make_lecture):
    enrolled = make_lecture(day="Wednesday", start="13:00", end="14:30", students=["S1"],
                            status=CANCELED)
    candidate = make_lecture(day="Wednesday", start="13:00", end="14:30", teacher="T2", room="Lab2")
    snapshot = make_snapshot([enrolled, candidate])

    assert can_enroll(snapshot, "S1", candidate.id)


def test_can_enroll_unknown_lecture(make_snapshot):
    with pytest.raises(NotFound):
        can_enroll(make_snapshot(students=["S1"]), "S1", "L404")


def test_find_reschedule_slots_rejects_a_bare_string(make_snapshot):
    snapshot = make_snapshot(teachers=["T1"], rooms=["Room101"], students=["S1"])

    with pytest.raises(ValidationError) as exc:
        find_reschedule_slots(snapshot, "T1", "Room101", "S1")
    assert exc.value.field == "studentIds"
