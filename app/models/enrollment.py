from dataclasses import dataclass


@dataclass()
class Enrollment:
    """
    Links a student to a lecture they attend.

    Attributes:
        student_id: Identifier of the enrolled student
        attendance_rate: Share of sessions attended, between 0 and 1
        missed_sessions: Number of sessions missed so far
    """
    student_id: str
    attendance_rate: float = 1.0
    missed_sessions: int = 0

    def as_dict(self):
        return {
            "studentId": self.student_id,
            "attendanceRate": self.attendance_rate,
            "missedSessions": self.missed_sessions,
        }
