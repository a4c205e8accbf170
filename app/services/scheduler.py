from typing import Iterable, List, Optional, Sequence

from app.errors import NoSlotAvailable, NotFound, ValidationError
from app.models.lecture import Lecture
from app.models.schedule_result import ScheduleResult
from app.models.schedule_snapshot import ScheduleSnapshot
from app.models.time_slot import TimeSlot, TimeSpan
from app.models.working_hours import WorkingHours
from app.utils.conflicts import has_conflict, is_busy
from app.utils.utils import candidate_spans, format_time, span_to_slot

AVAILABILITY_DURATION = 60
LECTURE_DURATION = 90

DEFAULT_HOURS = WorkingHours()


def require_teacher(snapshot: ScheduleSnapshot, teacher_id: Optional[str]) -> str:
    if not teacher_id:
        raise ValidationError("Teacher is required.", field="teacher")
    if teacher_id not in snapshot.teachers:
        raise NotFound(f"Unknown teacher: {teacher_id}", field="teacher")
    return teacher_id


def require_classroom(snapshot: ScheduleSnapshot, classroom_id: Optional[str]) -> str:
    if not classroom_id:
        raise ValidationError("Classroom is required.", field="classroom")
    if classroom_id not in snapshot.classrooms:
        raise NotFound(f"Unknown classroom: {classroom_id}", field="classroom")
    return classroom_id


def require_student(snapshot: ScheduleSnapshot, student_id: Optional[str]) -> str:
    if not student_id:
        raise ValidationError("Student is required.", field="studentId")
    if student_id not in snapshot.students:
        raise NotFound(f"Unknown student: {student_id}", field="studentId")
    return student_id


def require_lecture(snapshot: ScheduleSnapshot, lecture_id: Optional[str]) -> Lecture:
    if not lecture_id:
        raise ValidationError("Lecture is required.", field="lectureId")
    lecture = snapshot.lecture(lecture_id)
    if lecture is None:
        raise NotFound(f"Unknown lecture: {lecture_id}", field="lectureId")
    return lecture


def is_slot_free(lectures: Iterable[Lecture], participants: Sequence[str], span: TimeSpan,
                 exclude_lecture_id: Optional[str] = None) -> bool:
    """
    Checks that every participant is free during the span.

    Args:
        lectures: Lectures of the snapshot
        participants: Teacher, classroom and student ids that must all be free
        span: Candidate span
        exclude_lecture_id: Lecture ignored by the check (the one being moved)
    """
    lectures = list(lectures)
    return not any(
        is_busy(lectures, participant_id, span, exclude_lecture_id)
        for participant_id in participants
    )


def free_slots(snapshot: ScheduleSnapshot, participants: Sequence[str], duration: int,
               hours: WorkingHours = DEFAULT_HOURS,
               exclude_lecture_id: Optional[str] = None) -> List[TimeSlot]:
    """
    Lists every slot of the work week where all participants are free.

    Slots are ordered by day (Monday first), then by start time.
    """
    return [
        span_to_slot(span)
        for span in candidate_spans(hours, duration)
        if is_slot_free(snapshot.lectures, participants, span, exclude_lecture_id)
    ]


def first_free_slot(snapshot: ScheduleSnapshot, participants: Sequence[str], duration: int,
                    hours: WorkingHours = DEFAULT_HOURS,
                    exclude_lecture_id: Optional[str] = None) -> TimeSlot:
    """
    Returns the earliest slot of the work week where all participants are free.

    Raises:
        NoSlotAvailable: If every candidate slot of the week is taken
    """
    for span in candidate_spans(hours, duration):
        if is_slot_free(snapshot.lectures, participants, span, exclude_lecture_id):
            return span_to_slot(span)

    raise NoSlotAvailable(
        f"No {duration}-minute slot is free for {', '.join(participants)} "
        f"between {format_time(hours.day_start)} and {format_time(hours.day_end)}, "
        f"{hours.days[0]} to {hours.days[-1]}."
    )


def find_available(snapshot: ScheduleSnapshot, room: Optional[str] = None,
                   instructor: Optional[str] = None, duration: int = AVAILABILITY_DURATION,
                   hours: WorkingHours = DEFAULT_HOURS) -> List[TimeSlot]:
    """
    Finds every slot where the room and/or the instructor are free.

    Args:
        snapshot: Lectures and directories at query time
        room: Classroom id to check
        instructor: Teacher id to check
        duration: Slot length in minutes (1 hour by default)
        hours: Working hours window

    Returns:
        All free slots, ordered by day then start time

    Raises:
        ValidationError: If neither room nor instructor is given
        NotFound: If the room or instructor does not exist
    """
    if not room and not instructor:
        raise ValidationError("Either room or instructor must be provided.", field="room")

    participants = []
    if room:
        participants.append(require_classroom(snapshot, room))
    if instructor:
        participants.append(require_teacher(snapshot, instructor))

    return free_slots(snapshot, participants, duration, hours)


def schedule_new(snapshot: ScheduleSnapshot, subject: str, teacher: str, classroom: str,
                 duration: int = LECTURE_DURATION,
                 hours: WorkingHours = DEFAULT_HOURS) -> ScheduleResult:
    """
    Finds the first slot where both the teacher and the classroom are free.

    Args:
        snapshot: Lectures and directories at query time
        subject: Subject of the new lecture
        teacher: Teacher id
        classroom: Classroom id
        duration: Lecture length in minutes (1.5 hours by default)
        hours: Working hours window

    Returns:
        A successful result with the slot, or a failed one with the reason
    """
    if not subject or not str(subject).strip():
        raise ValidationError("Subject is required.", field="subject")
    participants = [require_teacher(snapshot, teacher), require_classroom(snapshot, classroom)]

    try:
        slot = first_free_slot(snapshot, participants, duration, hours)
    except NoSlotAvailable as e:
        return ScheduleResult(success=False, reason=e.message)
    return ScheduleResult(success=True, slot=slot)


def find_reschedule_slots(snapshot: ScheduleSnapshot, teacher: str, classroom: str,
                          student_ids: Iterable[str], duration: int = LECTURE_DURATION,
                          hours: WorkingHours = DEFAULT_HOURS,
                          exclude_lecture_id: Optional[str] = None) -> List[TimeSlot]:
    """
    Finds every slot where the teacher, the classroom and all students are free.

    Args:
        snapshot: Lectures and directories at query time
        teacher: Teacher id
        classroom: Classroom id
        student_ids: Students enrolled in the lecture being moved
        duration: Lecture length in minutes (1.5 hours by default)
        hours: Working hours window
        exclude_lecture_id: The lecture being moved, ignored by the checks

    Returns:
        All qualifying slots, ordered by day then start time
    """
    if isinstance(student_ids, (str, bytes)):
        raise ValidationError("Student ids must be a list, not a single string.", field="studentIds")
    participants = [require_teacher(snapshot, teacher), require_classroom(snapshot, classroom)]
    for student_id in dict.fromkeys(student_ids):
        participants.append(require_student(snapshot, student_id))

    return free_slots(snapshot, participants, duration, hours, exclude_lecture_id)


def lectures_of_student(snapshot: ScheduleSnapshot, student_id: str) -> List[Lecture]:
    """Returns the non-canceled lectures the student is enrolled in"""
    return [
        lecture for lecture in snapshot.lectures
        if not lecture.is_canceled and lecture.has_student(student_id)
    ]


def can_enroll(snapshot: ScheduleSnapshot, student_id: str, lecture_id: str) -> bool:
    """
    Checks if the student can take the lecture without a time clash.

    Does not enroll the student; the caller commits the enrollment.

    Raises:
        NotFound: If the student or the lecture does not exist
    """
    require_student(snapshot, student_id)
    candidate = require_lecture(snapshot, lecture_id)
    return not has_conflict(lectures_of_student(snapshot, student_id), candidate)
