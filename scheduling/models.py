"""Data models for schedule decisions."""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from scheduling.errors import UnknownStateRepresentation


class EventKind(Enum):
    """Classification of a calendar event by its name prefix."""
    DISABLE_LATCH = 'disable_latch'
    ENABLE_LATCH = 'enable_latch'
    OVERRIDE_OFF = 'override_off'
    OVERRIDE_ON = 'override_on'
    SCHEDULE_OFF = 'schedule_off'
    SCHEDULE_ON = 'schedule_on'
    INERT = 'inert'


@dataclass(frozen=True)
class Event:
    """Calendar event read from the shared event table."""
    event_id: str
    name: str
    starts_at: datetime
    ends_at: Optional[datetime] = None


@dataclass(frozen=True)
class LatchState:
    """Most recent sticky latches seen up to now."""
    disable_at: Optional[datetime]
    enable_at: Optional[datetime]
    hard_disabled: bool


@dataclass(frozen=True)
class ActiveWindows:
    """Categories with at least one event active right now."""
    override_off: bool = False
    override_on: bool = False
    schedule_off: bool = False
    schedule_on: bool = False


@dataclass(frozen=True)
class Decision:
    """Desired automation state and why."""
    desired_enabled: bool
    reason: str
    latch: LatchState
    active: ActiveWindows


@dataclass(frozen=True)
class RunResult:
    """Summary of a single toggle run."""
    automation_name: str
    current_enabled: bool
    desired_enabled: bool
    changed: bool
    reason: str


# Recognised boolean state fields, in lookup order, and whether each is
# stored inverted relative to "enabled".
STATE_FIELDS = (
    ('enabled', False),
    ('disabled', True),
    ('is_enabled', False),
)


@dataclass(frozen=True)
class AutomationRecord:
    """Automation located by name, with its state field resolved."""
    automation_id: object
    name: str
    state_field: str
    inverted: bool
    current_enabled: bool

    @classmethod
    def resolve(cls, automation_id, name: str, attributes: dict) -> 'AutomationRecord':
        """
        Resolve which state field an automation exposes.

        Args:
            automation_id: Record identifier
            name: Automation name
            attributes: Raw record attributes

        Returns:
            AutomationRecord with a normalised enabled reading

        Raises:
            UnknownStateRepresentation: If no recognised field is present
        """
        for field, inverted in STATE_FIELDS:
            if field in attributes:
                value = bool(attributes[field])
                return cls(
                    automation_id=automation_id,
                    name=name,
                    state_field=field,
                    inverted=inverted,
                    current_enabled=not value if inverted else value
                )
        raise UnknownStateRepresentation(automation_id)

    def stored_value(self, enabled: bool) -> bool:
        """Value to write into state_field so the automation reads as enabled."""
        return not enabled if self.inverted else enabled
