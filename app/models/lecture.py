from dataclasses import dataclass, field
from typing import List

from app.models.enrollment import Enrollment

CONFIRMED = "confirmed"
PENDING = "pending"
CANCELED = "canceled"

LECTURE_STATUSES = (CONFIRMED, PENDING, CANCELED)
ROLES = ("admin", "teacher", "student")


@dataclass()
class Lecture:
    """
    Represents one weekly lecture in the timetable.

    Times are "HH:MM" strings and the range is half-open, so a lecture
    ending at 10:30 does not collide with one starting at 10:30.
    Canceled lectures stay in the store for history but never block a slot.

    Attributes:
        id: Unique identifier for the lecture (e.g., "L-101")
        subject: Subject name (e.g., "Data Structures")
        code: Course code (e.g., "CS201")
        teacher_id: Identifier of the teacher giving the lecture
        classroom_id: Identifier of the classroom it takes place in
        day: Day of the week (Monday, Tuesday, Wednesday, Thursday, Friday)
        start_time: Start time in HH:MM format (e.g., "09:00")
        end_time: End time in HH:MM format (e.g., "10:30")
        status: One of confirmed, pending, canceled
        students: Enrollment records of the students attending
        elective: Whether students may sign up for it themselves
        for_roles: Roles whose timetable shows the lecture
    """
    id: str
    subject: str
    code: str
    teacher_id: str
    classroom_id: str
    day: str
    start_time: str
    end_time: str
    status: str = CONFIRMED
    students: List[Enrollment] = field(default_factory=list)
    elective: bool = False
    for_roles: List[str] = field(default_factory=lambda: list(ROLES))

    @property
    def is_canceled(self) -> bool:
        return self.status == CANCELED

    @property
    def student_ids(self) -> List[str]:
        return [enrollment.student_id for enrollment in self.students]

    def has_student(self, student_id: str) -> bool:
        return any(e.student_id == student_id for e in self.students)

    def as_dict(self):
        return {
            "id": self.id,
            "subject": self.subject,
            "code": self.code,
            "teacherId": self.teacher_id,
            "classroomId": self.classroom_id,
            "day": self.day,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "status": self.status,
            "students": [e.as_dict() for e in self.students],
            "elective": self.elective,
            "forRoles": list(self.for_roles),
        }
