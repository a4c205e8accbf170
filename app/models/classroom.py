from dataclasses import dataclass


@dataclass
class Classroom:
    """
    Represents a physical classroom or lecture hall.

    Attributes:
        id: Unique identifier for the classroom (e.g., "Room101")
        name: Display name (e.g., "Room 101")
        capacity: Maximum number of students that can fit
    """
    id: str
    name: str
    capacity: int = 0
