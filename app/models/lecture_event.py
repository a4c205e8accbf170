from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from app.models.time_slot import TimeSlot

CREATED = "created"
CANCELED = "canceled"
RESCHEDULED = "rescheduled"
ENROLLED = "enrolled"


@dataclass(frozen=True)
class LectureChanged:
    """
    Emitted by the schedule store after every successful write.

    Listeners decide how to persist or display it (notification list,
    message queue, ...).

    Attributes:
        kind: One of created, canceled, rescheduled, enrolled
        lecture_id: Identifier of the lecture that changed
        student_ids: Students affected by the change
        slot: The lecture's slot after the change, when it has one
        timestamp: When the change was committed (UTC)
    """
    kind: str
    lecture_id: str
    student_ids: List[str] = field(default_factory=list)
    slot: Optional[TimeSlot] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def as_dict(self):
        return {
            "kind": self.kind,
            "lectureId": self.lecture_id,
            "studentIds": list(self.student_ids),
            "slot": self.slot.as_dict() if self.slot else None,
            "timestamp": self.timestamp.isoformat(),
        }
