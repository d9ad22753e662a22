"""
Data classes for progress indicator monitoring.
This module provides the value types that flow between the detection components.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, NamedTuple, Optional

SOURCE_NOTIFICATION = "notification"
SOURCE_POLL = "poll"


@dataclass(frozen=True)
class ProcessInfo:
    """Snapshot of a running application."""
    process_id: int
    display_name: str
    is_regular_app: bool

    def __str__(self):
        return f"{self.display_name} (PID: {self.process_id})"


@dataclass
class Subscription:
    """A live notification subscription for one process."""
    process_id: int
    observer_handle: Any


class DetectionIdentity(NamedTuple):
    """Dedup key for a detection: the same bar showing the same value."""
    process_id: int
    role: str
    value: str


@dataclass(frozen=True)
class DetectionRecord:
    """A progress indicator observed in some application."""
    process_id: int
    display_name: str
    role: str
    value: Any = None
    min_value: Any = None
    max_value: Any = None
    description: Optional[str] = None
    source: str = SOURCE_NOTIFICATION
    timestamp: float = field(default_factory=time.time)

    def identity(self) -> DetectionIdentity:
        """Build the dedup key for this record."""
        value = "none" if self.value is None else str(self.value)
        return DetectionIdentity(self.process_id, self.role, value)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the record to a serializable dictionary."""
        return {
            "type": "progress_indicator",
            "timestamp": self.timestamp,
            "source": self.source,
            "pid": self.process_id,
            "app": self.display_name,
            "role": self.role,
            "value": self.value,
            "min_value": self.min_value,
            "max_value": self.max_value,
            "description": self.description,
        }

    def __str__(self):
        return (f"DetectionRecord({self.display_name}, pid={self.process_id}, role={self.role}, "
                f"value={self.value}, min={self.min_value}, max={self.max_value})")
