from typing import Optional


class SchedulingError(Exception):
    """Base class for errors surfaced to the caller of the scheduling engine"""

    kind = "scheduling_error"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def as_dict(self):
        error = {"status": "error", "error": self.kind, "message": self.message}
        if self.field:
            error["field"] = self.field
        return error


class ValidationError(SchedulingError):
    """Missing or malformed input; the user can correct and retry"""

    kind = "validation_error"


class NoSlotAvailable(SchedulingError):
    """The search went through the whole work week without a free slot"""

    kind = "no_slot_available"


class NotFound(SchedulingError):
    """A referenced teacher, classroom, student, course or lecture does not exist"""

    kind = "not_found"
