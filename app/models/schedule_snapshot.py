from dataclasses import dataclass, field
from typing import Dict, Tuple

from app.models.classroom import Classroom
from app.models.course import Course
from app.models.lecture import Lecture
from app.models.student import Student
from app.models.teacher import Teacher


@dataclass(frozen=True)
class ScheduleSnapshot:
    """
    Everything the scheduling engine reads, frozen at query time.

    The engine never reaches back into the store: callers take a snapshot
    and pass it into each query, so results only depend on its contents.

    Attributes:
        lectures: All lecture records, canceled ones included
        teachers: Map of teacher ID to Teacher objects
        classrooms: Map of classroom ID to Classroom objects
        students: Map of student ID to Student objects
        courses: Map of course code to Course objects
    """
    lectures: Tuple[Lecture, ...] = ()
    teachers: Dict[str, Teacher] = field(default_factory=dict)
    classrooms: Dict[str, Classroom] = field(default_factory=dict)
    students: Dict[str, Student] = field(default_factory=dict)
    courses: Dict[str, Course] = field(default_factory=dict)

    def lecture(self, lecture_id: str):
        for lecture in self.lectures:
            if lecture.id == lecture_id:
                return lecture
        return None
