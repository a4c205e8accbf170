import itertools

import pytest

from app.models.classroom import Classroom
from app.models.course import Course
from app.models.enrollment import Enrollment
from app.models.lecture import CONFIRMED, Lecture
from app.models.schedule_snapshot import ScheduleSnapshot
from app.models.student import Student
from app.models.teacher import Teacher
from app.services.schedule_store import ScheduleStore


@pytest.fixture
def make_lecture():
    ids = itertools.count(1)

    def factory(day="Monday", start="09:00", end="10:30", teacher="T1", room="Room101",
                students=(), status=CONFIRMED, lecture_id=None, code="CS101",
                subject="Algorithms", elective=False):
        return Lecture(
            id=lecture_id or f"L{next(ids)}",
            subject=subject,
            code=code,
            teacher_id=teacher,
            classroom_id=room,
            day=day,
            start_time=start,
            end_time=end,
            status=status,
            students=[Enrollment(student_id=s) for s in students],
            elective=elective,
        )

    return factory


def directories(lectures, teachers=(), rooms=(), students=()):
    teacher_ids = set(teachers) | {lecture.teacher_id for lecture in lectures}
    room_ids = set(rooms) | {lecture.classroom_id for lecture in lectures}
    student_ids = set(students) | {s for lecture in lectures for s in lecture.student_ids}
    return (
        {t: Teacher(id=t, full_name=f"Teacher {t}") for t in teacher_ids},
        {r: Classroom(id=r, name=r) for r in room_ids},
        {s: Student(id=s, name=f"Student {s}", department="Computer Science") for s in student_ids},
    )


@pytest.fixture
def make_snapshot():
    """Builds a snapshot whose directories hold every id the lectures use, plus extras"""

    def factory(lectures=(), teachers=(), rooms=(), students=()):
        teacher_map, room_map, student_map = directories(lectures, teachers, rooms, students)
        return ScheduleSnapshot(
            lectures=tuple(lectures),
            teachers=teacher_map,
            classrooms=room_map,
            students=student_map,
        )

    return factory


@pytest.fixture
def make_store():

    def factory(lectures=(), teachers=(), rooms=(), students=(), courses=()):
        teacher_map, room_map, student_map = directories(lectures, teachers, rooms, students)
        return ScheduleStore(
            teachers=teacher_map.values(),
            classrooms=room_map.values(),
            students=student_map.values(),
            courses=courses,
            lectures=lectures,
        )

    return factory


@pytest.fixture
def elective_course():
    return Course(code="CS305", subject="Machine Learning",
                  department="Computer Science", elective=True)
