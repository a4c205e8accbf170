from typing import Iterable, Iterator, Optional

from app.models.lecture import Lecture
from app.models.time_slot import TimeSpan
from app.utils.utils import to_span


def overlaps(a: TimeSpan, b: TimeSpan) -> bool:
    """
    Returns True if two spans overlap.

    Ranges are half-open: a span ending at 10:30 and one starting at 10:30
    do not overlap. Spans on different days never overlap.
    """
    return a.day == b.day and a.start < b.end and b.start < a.end


def lecture_span(lecture: Lecture) -> TimeSpan:
    return to_span(lecture.day, lecture.start_time, lecture.end_time)


def references(lecture: Lecture, participant_id: str) -> bool:
    """
    Checks if the lecture involves the participant.

    Teachers, classrooms and students share one id space for this check,
    so any of them can be passed.
    """
    return (lecture.teacher_id == participant_id
            or lecture.classroom_id == participant_id
            or lecture.has_student(participant_id))


def active_lectures(lectures: Iterable[Lecture],
                    exclude_lecture_id: Optional[str] = None) -> Iterator[Lecture]:
    """Yields lectures that can still cause a conflict"""
    for lecture in lectures:
        if lecture.is_canceled:
            continue
        if exclude_lecture_id is not None and lecture.id == exclude_lecture_id:
            continue
        yield lecture


def is_busy(lectures: Iterable[Lecture], participant_id: str, span: TimeSpan,
            exclude_lecture_id: Optional[str] = None) -> bool:
    """
    Checks if a participant has a non-canceled lecture overlapping the span.

    Args:
        lectures: Lectures to check against
        participant_id: Teacher, classroom or student id
        span: Candidate span
        exclude_lecture_id: Lecture to ignore (the one being moved)

    Returns:
        True if the participant is busy during the span, False otherwise
    """
    for lecture in active_lectures(lectures, exclude_lecture_id):
        if references(lecture, participant_id) and overlaps(lecture_span(lecture), span):
            return True
    return False


def has_conflict(committed: Iterable[Lecture], candidate: Lecture) -> bool:
    """
    Checks if the candidate overlaps any of the committed lectures.

    Canceled lectures on either side never conflict, and the candidate is
    not compared with itself.
    """
    if candidate.is_canceled:
        return False
    span = lecture_span(candidate)
    for lecture in active_lectures(committed, exclude_lecture_id=candidate.id):
        if overlaps(lecture_span(lecture), span):
            return True
    return False
