from enum import Enum
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List

from watchdog.events import (
    FileSystemEvent,
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
)


class Operation(Enum):
    CREATE = "create"
    WRITE = "write"
    REMOVE = "remove"
    # directory moved away; the ledger drops it, nothing is notified
    RENAME = "rename"
    OTHER = "other"


ACTIONABLE = frozenset({Operation.CREATE, Operation.WRITE, Operation.REMOVE, Operation.RENAME})


class Classification(Enum):
    NEW_DIRECTORY = "new_directory"
    CONTENT_CHANGED = "content_changed"
    DROPPED = "dropped"


@dataclass
class RawEvent:
    path: Path
    operation: Operation
    timestamp: datetime = None

    def __post_init__(self):
        if not isinstance(self.path, Path):
            self.path = Path(self.path)
        if self.timestamp is None:
            self.timestamp = datetime.now()

    @property
    def actionable(self) -> bool:
        return self.operation in ACTIONABLE

    def __str__(self):
        return f"{self.operation.value}: {self.path}"


def from_watchdog(event: FileSystemEvent) -> List[RawEvent]:
    """
    Translate a watchdog event into raw events.

    A move is split in two: the source leaves (a rename, which only matters
    for directories) and the destination appears as a fresh create.
    Modifications reported on a
    directory itself only echo changes to its children and are ignored.
    """
    src_path = event.src_path
    if isinstance(src_path, bytes):
        src_path = src_path.decode()

    if event.event_type == EVENT_TYPE_CREATED:
        return [RawEvent(Path(src_path), Operation.CREATE)]

    if event.event_type == EVENT_TYPE_MODIFIED:
        if event.is_directory:
            return [RawEvent(Path(src_path), Operation.OTHER)]
        return [RawEvent(Path(src_path), Operation.WRITE)]

    if event.event_type == EVENT_TYPE_DELETED:
        return [RawEvent(Path(src_path), Operation.REMOVE)]

    if event.event_type == EVENT_TYPE_MOVED:
        dest_path = event.dest_path
        if isinstance(dest_path, bytes):
            dest_path = dest_path.decode()
        source = Operation.RENAME if event.is_directory else Operation.OTHER
        events = [RawEvent(Path(src_path), source)]
        if dest_path:
            events.append(RawEvent(Path(dest_path), Operation.CREATE))
        return events

    # opened / closed / closed_no_write
    return [RawEvent(Path(src_path), Operation.OTHER)]
