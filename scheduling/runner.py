"""Applies a schedule decision to the controlled automation."""
import logging
from datetime import datetime
from typing import Optional

from scheduling.config import ScheduleConfig
from scheduling.decision_engine import DecisionEngine
from scheduling.interfaces import AutomationStateStore
from scheduling.models import RunResult

logger = logging.getLogger(__name__)

LOG_PREFIX = '[bot-schedule]'


class ScheduleRunner:
    """One-shot toggle run: decide, compare, write if needed."""

    def __init__(
        self,
        config: ScheduleConfig,
        engine: DecisionEngine,
        store: AutomationStateStore
    ):
        self.config = config
        self.engine = engine
        self.store = store

    def _step(self, message: str) -> None:
        level = logging.INFO if self.config.verbose else logging.DEBUG
        logger.log(level, f"{LOG_PREFIX} {message}")

    def run(self, now: Optional[datetime] = None) -> RunResult:
        """
        Run the toggle once.

        Args:
            now: Instant to decide for (default: current time)

        Returns:
            RunResult describing the outcome

        Raises:
            AutomationNotFound: If no automation matches the configured name
            UnknownStateRepresentation: If the automation state can't be read
        """
        tz = self.config.timezone
        now = datetime.now(tz) if now is None else now.astimezone(tz)

        decision = self.engine.decide(now)
        record = self.store.find_by_name(self.config.automation_name)

        latch = decision.latch
        active = decision.active
        self._step(f"now={now.isoformat()} tz={self.config.timezone_name}")
        self._step(
            f"latch: disable_at={latch.disable_at} enable_at={latch.enable_at} "
            f"hard_disabled={latch.hard_disabled}"
        )
        self._step(
            f"active: override_off={active.override_off} "
            f"override_on={active.override_on} "
            f"sched_off={active.schedule_off} sched_on={active.schedule_on}"
        )
        self._step(
            f"automation='{self.config.automation_name}' "
            f"current={record.current_enabled} "
            f"desired={decision.desired_enabled} reason={decision.reason}"
        )

        changed = record.current_enabled != decision.desired_enabled
        if changed:
            self.store.set_enabled(record, decision.desired_enabled)
            logger.info(f"{LOG_PREFIX} changed: enabled={decision.desired_enabled}")
        else:
            logger.info(f"{LOG_PREFIX} no change")

        return RunResult(
            automation_name=self.config.automation_name,
            current_enabled=record.current_enabled,
            desired_enabled=decision.desired_enabled,
            changed=changed,
            reason=decision.reason
        )
