"""Narrow interfaces to the external event table and automation store."""
from datetime import datetime
from typing import List, Protocol

from scheduling.models import AutomationRecord, Event


class EventRepository(Protocol):
    """Read-only access to non-deleted calendar events."""

    def latch_events(self, now: datetime) -> List[Event]:
        """Latch events started at or before now, newest first."""
        ...

    def active_events(self, now: datetime) -> List[Event]:
        """Events whose window contains now, oldest first."""
        ...


class AutomationStateStore(Protocol):
    """Lookup and update of automation records."""

    def find_by_name(self, name: str) -> AutomationRecord:
        """Raises AutomationNotFound or UnknownStateRepresentation."""
        ...

    def set_enabled(self, record: AutomationRecord, enabled: bool) -> None:
        ...
