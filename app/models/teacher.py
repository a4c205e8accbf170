from dataclasses import dataclass


@dataclass()
class Teacher:
    """
    Represents a teacher or instructor.

    Attributes:
        id: Unique identifier for the teacher
        full_name: Teacher's full name (e.g., "Dr. Alan Grant")
        department: Department the teacher belongs to
    """
    id: str
    full_name: str
    department: str = "General"
