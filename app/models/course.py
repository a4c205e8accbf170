from dataclasses import dataclass


@dataclass()
class Course:
    """
    Represents a course in the catalogue.

    Lectures reference courses by code. Elective courses are offered to the
    students of the same department.

    Attributes:
        code: Course code (e.g., "CS305")
        subject: Subject name (e.g., "Machine Learning")
        department: Owning department (e.g., "Computer Science")
        elective: Whether the course is an elective
        description: Short catalogue description
    """
    code: str
    subject: str
    department: str = "General"
    elective: bool = False
    description: str = ""
