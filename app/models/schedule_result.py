from dataclasses import dataclass
from typing import Optional

from app.models.time_slot import TimeSlot


@dataclass(frozen=True)
class ScheduleResult:
    """
    Outcome of placing a new lecture.

    Attributes:
        success: Whether a slot was found
        slot: The first free slot, when successful
        reason: Why no slot could be found, when not successful
    """
    success: bool
    slot: Optional[TimeSlot] = None
    reason: Optional[str] = None

    def as_dict(self):
        if self.success:
            return {"success": True, **self.slot.as_dict()}
        return {"success": False, "reason": self.reason}
