from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Optional
import time


class EventType(str, Enum):
    UPDATE = "update"
    REMOVE = "remove"


@dataclass(frozen=True)
class RawSignal:
    """Unclassified notification delivered by one primitive watch"""
    node_path: str
    child: Optional[str] = None
    raw_kind: Optional[str] = None


@dataclass
class ChangeEvent:
    event_type: EventType
    path: str
    root: Any = None
    synthetic: bool = False
    timestamp: float = field(default_factory=time.monotonic)

    def __str__(self):
        return f"{self.event_type.value}: {self.path}"
