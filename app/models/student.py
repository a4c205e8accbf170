from dataclasses import dataclass


@dataclass()
class Student:
    """
    Represents a student who can be enrolled in lectures.

    Attributes:
        id: Unique identifier for the student
        name: Student's full name
        department: Department whose electives the student may take
    """
    id: str
    name: str
    department: str = "General"
