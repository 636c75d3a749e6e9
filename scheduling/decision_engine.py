"""Decision engine for the desired automation state."""
import logging
from datetime import datetime
from typing import Iterable, Optional

from scheduling.config import ScheduleConfig
from scheduling.interfaces import EventRepository
from scheduling.models import ActiveWindows, Decision, Event, EventKind, LatchState

logger = logging.getLogger(__name__)

# Tested in order; the first matching prefix wins.
PREFIXES = (
    (EventKind.DISABLE_LATCH, ('BOT DISABLE',)),
    (EventKind.ENABLE_LATCH, ('BOT ENABLE',)),
    (EventKind.OVERRIDE_OFF, ('BOT OFF',)),
    (EventKind.OVERRIDE_ON, ('BOT ON',)),
    (EventKind.SCHEDULE_OFF, ('SCHEDULE OFF', 'BASE OFF')),
    (EventKind.SCHEDULE_ON, ('SCHEDULE ON', 'BASE ON')),
)

# Active rows outside these namespaces are ignored outright.
SCHEDULE_NAMESPACES = ('BOT ', 'SCHEDULE ', 'BASE ')

LATCH_KINDS = (EventKind.DISABLE_LATCH, EventKind.ENABLE_LATCH)


def normalize_name(name: Optional[str]) -> str:
    return (name or '').strip().upper()


def classify_event(name: Optional[str]) -> EventKind:
    """
    Classify an event by its name prefix.

    Args:
        name: Free-text event name

    Returns:
        Matching EventKind, or EventKind.INERT
    """
    normalized = normalize_name(name)
    for kind, prefixes in PREFIXES:
        if normalized.startswith(prefixes):
            return kind
    return EventKind.INERT


def is_active(event: Event, now: datetime) -> bool:
    if event.starts_at > now:
        return False
    return event.ends_at is None or now <= event.ends_at


def resolve_latch(events: Iterable[Event], now: datetime) -> LatchState:
    """
    Resolve sticky BOT DISABLE / BOT ENABLE latches.

    Only the start time matters; end times are ignored. The most recent
    action wins and a disable wins an exact tie.

    Args:
        events: Candidate events
        now: Current instant

    Returns:
        LatchState with the latest latch instants
    """
    disable_at = None
    enable_at = None

    for event in events:
        if event.starts_at > now:
            continue
        kind = classify_event(event.name)
        if kind is EventKind.DISABLE_LATCH:
            if disable_at is None or event.starts_at > disable_at:
                disable_at = event.starts_at
        elif kind is EventKind.ENABLE_LATCH:
            if enable_at is None or event.starts_at > enable_at:
                enable_at = event.starts_at

    if disable_at is None:
        hard_disabled = False
    elif enable_at is None:
        hard_disabled = True
    else:
        hard_disabled = enable_at <= disable_at

    return LatchState(
        disable_at=disable_at,
        enable_at=enable_at,
        hard_disabled=hard_disabled
    )


def resolve_active(events: Iterable[Event], now: datetime) -> ActiveWindows:
    """
    Find which override and baseline categories are active right now.

    Args:
        events: Candidate events
        now: Current instant

    Returns:
        ActiveWindows with one flag per category
    """
    kinds = set()
    for event in events:
        if not is_active(event, now):
            continue
        if not normalize_name(event.name).startswith(SCHEDULE_NAMESPACES):
            continue
        kinds.add(classify_event(event.name))

    return ActiveWindows(
        override_off=EventKind.OVERRIDE_OFF in kinds,
        override_on=EventKind.OVERRIDE_ON in kinds,
        schedule_off=EventKind.SCHEDULE_OFF in kinds,
        schedule_on=EventKind.SCHEDULE_ON in kinds
    )


def default_enabled(default_mode: str, now: datetime) -> bool:
    """Fallback state: fixed on/off, otherwise enabled on weekends only."""
    mode = default_mode.lower()
    if mode == 'on':
        return True
    if mode == 'off':
        return False
    return now.weekday() >= 5


def decide(
    now: datetime,
    latch_events: Iterable[Event],
    active_events: Iterable[Event],
    default_mode: str
) -> Decision:
    """
    Resolve the desired automation state from events.

    Priority: hard disable, override off, override on, baseline off,
    baseline on, then the default mode.

    Args:
        now: Current instant in the configured time zone
        latch_events: Latch candidates
        active_events: Active-window candidates
        default_mode: on, off or weekends

    Returns:
        Decision with desired state and reason
    """
    latch = resolve_latch(latch_events, now)
    active = resolve_active(active_events, now)

    if latch.hard_disabled:
        reason = f"hard disabled (last DISABLE at {latch.disable_at}"
        if latch.enable_at:
            reason += f", last ENABLE at {latch.enable_at}"
        reason += ")"
        desired = False
    elif active.override_off:
        desired, reason = False, "override off (BOT OFF active)"
    elif active.override_on:
        desired, reason = True, "override on (BOT ON active)"
    elif active.schedule_off:
        desired, reason = False, "baseline off (SCHEDULE OFF active)"
    elif active.schedule_on:
        desired, reason = True, "baseline on (SCHEDULE ON active)"
    else:
        desired = default_enabled(default_mode, now)
        reason = f"fallback default (mode={default_mode})"

    return Decision(
        desired_enabled=desired,
        reason=reason,
        latch=latch,
        active=active
    )


class DecisionEngine:
    """Computes decisions from an event repository and configuration."""

    def __init__(self, config: ScheduleConfig, repository: EventRepository):
        self.config = config
        self.repository = repository

    def decide(self, now: datetime) -> Decision:
        """
        Query events and resolve the desired state at the given instant.

        Args:
            now: Current instant; converted to the configured zone

        Returns:
            Decision for this run
        """
        now = now.astimezone(self.config.timezone)
        latch_events = self.repository.latch_events(now)
        active_events = self.repository.active_events(now)
        logger.debug(
            f"Loaded {len(latch_events)} latch and "
            f"{len(active_events)} active events"
        )
        return decide(now, latch_events, active_events, self.config.default_mode)
