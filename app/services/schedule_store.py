import copy
import itertools
import logging
import threading
from typing import Callable, Dict, Iterable, List, Optional

from app.errors import NoSlotAvailable, NotFound, ValidationError
from app.models import lecture_event
from app.models.classroom import Classroom
from app.models.course import Course
from app.models.enrollment import Enrollment
from app.models.lecture import CANCELED, CONFIRMED, LECTURE_STATUSES, ROLES, Lecture
from app.models.lecture_event import LectureChanged
from app.models.schedule_snapshot import ScheduleSnapshot
from app.models.student import Student
from app.models.teacher import Teacher
from app.models.working_hours import WorkingHours
from app.services import scheduler
from app.utils.utils import normalize_day, span_to_slot, to_span

logger = logging.getLogger(__name__)

Listener = Callable[[LectureChanged], None]


def validate_enrollment(enrollment: Enrollment):
    """
    Checks the attendance figures of an enrollment record.

    Raises:
        ValidationError: If the attendance rate is outside [0, 1] or the
            missed session count is negative
    """
    rate = enrollment.attendance_rate
    if isinstance(rate, bool) or not isinstance(rate, (int, float)) or not 0 <= rate <= 1:
        raise ValidationError(
            f"Attendance rate of {enrollment.student_id} must be between 0 and 1, got {rate!r}",
            field="attendanceRate",
        )
    missed = enrollment.missed_sessions
    if isinstance(missed, bool) or not isinstance(missed, int) or missed < 0:
        raise ValidationError(
            f"Missed sessions of {enrollment.student_id} must be a non-negative integer, got {missed!r}",
            field="missedSessions",
        )


class ScheduleStore:
    """
    Owns the lecture records and the teacher, classroom, student and course
    directories.

    Reads go through snapshot(), which the scheduling engine takes as input.
    Writes (create, cancel, reschedule, enroll) are serialized by a lock and
    re-check the target slot inside it, so two writers racing for the same
    slot cannot both commit. Every successful write is announced to the
    subscribed listeners as a LectureChanged event while
    the lock is still held, so events arrive in commit order. A failing
    listener is logged and does not undo or fail the write.
    """

    def __init__(self, teachers: Iterable[Teacher] = (), classrooms: Iterable[Classroom] = (),
                 students: Iterable[Student] = (), courses: Iterable[Course] = (),
                 lectures: Iterable[Lecture] = (), hours: WorkingHours = scheduler.DEFAULT_HOURS,
                 lecture_duration: int = scheduler.LECTURE_DURATION):
        self.hours = hours
        self.lecture_duration = lecture_duration
        self._teachers: Dict[str, Teacher] = {t.id: t for t in teachers}
        self._classrooms: Dict[str, Classroom] = {c.id: c for c in classrooms}
        self._students: Dict[str, Student] = {s.id: s for s in students}
        self._courses: Dict[str, Course] = {c.code: c for c in courses}
        self._lectures: Dict[str, Lecture] = {}
        self._listeners: List[Listener] = []
        self._lock = threading.RLock()
        self._ids = itertools.count(1)

        for lecture in lectures:
            self.add_lecture(lecture)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def snapshot(self) -> ScheduleSnapshot:
        """Returns a copy of the current contents that later writes do not touch"""
        with self._lock:
            return ScheduleSnapshot(
                lectures=tuple(copy.deepcopy(list(self._lectures.values()))),
                teachers=dict(self._teachers),
                classrooms=dict(self._classrooms),
                students=dict(self._students),
                courses=dict(self._courses),
            )

    def get_lecture(self, lecture_id: str) -> Lecture:
        with self._lock:
            return copy.deepcopy(self._get(lecture_id))

    def lectures(self) -> List[Lecture]:
        return list(self.snapshot().lectures)

    def lectures_for_student(self, student_id: str) -> List[Lecture]:
        """Returns the non-canceled lectures the student attends"""
        snapshot = self.snapshot()
        scheduler.require_student(snapshot, student_id)
        return scheduler.lectures_of_student(snapshot, student_id)

    def lectures_for_role(self, role: str) -> List[Lecture]:
        if role not in ROLES:
            raise ValidationError(f"Unknown role: {role}", field="role")
        return [lecture for lecture in self.lectures() if role in lecture.for_roles]

    def filter_lectures(self, subject: Optional[str] = None, teacher: Optional[str] = None,
                        day: Optional[str] = None, role: Optional[str] = None) -> List[Lecture]:
        """
        Filters the timetable the way the dashboard filter bar does.

        Empty filters match everything; day "all" matches every day.

        Args:
            subject: Subject name
            teacher: Teacher id
            day: Day of the week
            role: Role whose timetable is being displayed
        """
        lectures = self.lectures_for_role(role) if role else self.lectures()
        if day and day != "all":
            day = normalize_day(day)

        return [
            lecture for lecture in lectures
            if (not subject or lecture.subject == subject)
            and (not teacher or lecture.teacher_id == teacher)
            and (not day or day == "all" or lecture.day == day)
        ]

    def available_electives(self, student_id: str) -> List[Lecture]:
        """
        Lists elective lectures of the student's department that the student
        is not already taking (matched by course code).
        """
        snapshot = self.snapshot()
        scheduler.require_student(snapshot, student_id)
        student = snapshot.students[student_id]

        taken_codes = {lecture.code for lecture in scheduler.lectures_of_student(snapshot, student_id)}
        department_codes = {
            course.code for course in snapshot.courses.values()
            if course.elective and course.department == student.department
        }
        return [
            lecture for lecture in snapshot.lectures
            if lecture.elective
            and not lecture.is_canceled
            and lecture.code in department_codes
            and lecture.code not in taken_codes
        ]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener):
        self._listeners.append(listener)

    def add_lecture(self, lecture: Lecture) -> Lecture:
        """
        Loads an existing lecture record as is, without a slot search.

        Raises:
            ValidationError: If the record is malformed or its id is taken
            NotFound: If it references an unknown teacher, classroom or student
        """
        if not lecture.id:
            raise ValidationError("Lecture id is required.", field="id")
        if lecture.status not in LECTURE_STATUSES:
            raise ValidationError(f"Invalid status: {lecture.status}", field="status")
        span = to_span(lecture.day, lecture.start_time, lecture.end_time)
        for enrollment in lecture.students:
            validate_enrollment(enrollment)

        with self._lock:
            if lecture.id in self._lectures:
                raise ValidationError(f"Duplicate lecture id: {lecture.id}", field="id")
            if lecture.teacher_id not in self._teachers:
                raise NotFound(f"Unknown teacher: {lecture.teacher_id}", field="teacher")
            if lecture.classroom_id not in self._classrooms:
                raise NotFound(f"Unknown classroom: {lecture.classroom_id}", field="classroom")
            for student_id in lecture.student_ids:
                if student_id not in self._students:
                    raise NotFound(f"Unknown student: {student_id}", field="studentId")

            stored = copy.deepcopy(lecture)
            stored.day = span.day
            self._lectures[stored.id] = stored
            return copy.deepcopy(stored)

    def create_lecture(self, subject: str, code: str, teacher_id: str, classroom_id: str,
                       duration: Optional[int] = None, elective: bool = False) -> Lecture:
        """
        Places a new lecture in the first slot where teacher and classroom are free.

        Returns:
            The committed lecture, with status confirmed

        Raises:
            NoSlotAvailable: If the work week has no free slot for both
        """
        duration = duration or self.lecture_duration
        with self._lock:
            result = scheduler.schedule_new(
                self._locked_snapshot(), subject, teacher_id, classroom_id, duration, self.hours
            )
            if not result.success:
                raise NoSlotAvailable(result.reason)

            lecture = Lecture(
                id=self._next_id(),
                subject=subject,
                code=code or "",
                teacher_id=teacher_id,
                classroom_id=classroom_id,
                day=result.slot.day,
                start_time=result.slot.start_time,
                end_time=result.slot.end_time,
                status=CONFIRMED,
                elective=elective,
            )
            self._lectures[lecture.id] = lecture
            created = copy.deepcopy(lecture)
            self._emit(LectureChanged(kind=lecture_event.CREATED, lecture_id=created.id,
                                      slot=result.slot))
        return created

    def cancel_lecture(self, lecture_id: str) -> Lecture:
        """
        Marks a lecture as canceled. The record is kept.

        Raises:
            NotFound: If the lecture does not exist
            ValidationError: If it is already canceled
        """
        with self._lock:
            lecture = self._get(lecture_id)
            if lecture.is_canceled:
                raise ValidationError(f"Lecture {lecture_id} is already canceled.", field="lectureId")
            lecture.status = CANCELED
            canceled = copy.deepcopy(lecture)
            self._emit(LectureChanged(kind=lecture_event.CANCELED, lecture_id=canceled.id,
                                      student_ids=canceled.student_ids))
        return canceled

    def reschedule_lecture(self, lecture_id: str, day: str, start_time: str,
                           end_time: str) -> Lecture:
        """
        Moves a canceled lecture to a new slot and confirms it again.

        The slot is checked again here against the teacher, the classroom and
        every enrolled student, since it may have been taken after it was
        proposed.

        Raises:
            NotFound: If the lecture does not exist
            ValidationError: If the lecture is not canceled, the slot is
                outside working hours, or a participant is busy
        """
        span = to_span(day, start_time, end_time)
        if span.day not in self.hours.days or span.start < self.hours.day_start \
                or span.end > self.hours.day_end:
            raise ValidationError("The new slot is outside working hours.", field="startTime")

        with self._lock:
            lecture = self._get(lecture_id)
            if not lecture.is_canceled:
                raise ValidationError("Only canceled lectures can be rescheduled.", field="lectureId")

            participants = [lecture.teacher_id, lecture.classroom_id] + lecture.student_ids
            if not scheduler.is_slot_free(self._lectures.values(), participants, span,
                                          exclude_lecture_id=lecture.id):
                raise ValidationError("The selected slot is no longer free.", field="startTime")

            slot = span_to_slot(span)
            lecture.day = slot.day
            lecture.start_time = slot.start_time
            lecture.end_time = slot.end_time
            lecture.status = CONFIRMED
            rescheduled = copy.deepcopy(lecture)
            self._emit(LectureChanged(kind=lecture_event.RESCHEDULED, lecture_id=rescheduled.id,
                                      student_ids=rescheduled.student_ids, slot=slot))
        return rescheduled

    def enroll(self, student_id: str, lecture_id: str) -> Lecture:
        """
        Enrolls a student in an elective lecture if it fits their timetable.

        Raises:
            NotFound: If the student or lecture does not exist
            ValidationError: If the lecture is not an open elective, the
                student is already enrolled, or it clashes with their timetable
        """
        with self._lock:
            snapshot = self._locked_snapshot()
            scheduler.require_student(snapshot, student_id)
            lecture = self._get(lecture_id)

            if not lecture.elective:
                raise ValidationError("Only elective lectures are open for enrollment.",
                                      field="lectureId")
            if lecture.is_canceled:
                raise ValidationError("The lecture is canceled.", field="lectureId")
            if lecture.has_student(student_id):
                raise ValidationError("The student is already enrolled.", field="studentId")
            if not scheduler.can_enroll(snapshot, student_id, lecture_id):
                raise ValidationError("This elective conflicts with another lecture in the timetable.",
                                      field="lectureId")

            lecture.students.append(Enrollment(student_id=student_id))
            enrolled = copy.deepcopy(lecture)
            self._emit(LectureChanged(kind=lecture_event.ENROLLED, lecture_id=enrolled.id,
                                      student_ids=[student_id]))
        return enrolled

    # ------------------------------------------------------------------
    # Internals, callers hold the lock
    # ------------------------------------------------------------------

    def _get(self, lecture_id: str) -> Lecture:
        lecture = self._lectures.get(lecture_id)
        if lecture is None:
            raise NotFound(f"Unknown lecture: {lecture_id}", field="lectureId")
        return lecture

    def _locked_snapshot(self) -> ScheduleSnapshot:
        return ScheduleSnapshot(
            lectures=tuple(self._lectures.values()),
            teachers=self._teachers,
            classrooms=self._classrooms,
            students=self._students,
            courses=self._courses,
        )

    def _next_id(self) -> str:
        while True:
            lecture_id = f"L-{next(self._ids)}"
            if lecture_id not in self._lectures:
                return lecture_id

    def _emit(self, event: LectureChanged):
        # Runs under the write lock so listeners see events in commit order
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.warning(
                    f"Listener failed on {event.kind} event for lecture {event.lecture_id}: {e}",
                    exc_info=True,
                )
