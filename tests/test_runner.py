"""Unit tests for ScheduleRunner."""
import logging
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from scheduling.config import ScheduleConfig
from scheduling.decision_engine import DecisionEngine
from scheduling.errors import (
    AutomationNotFound,
    ConfigurationError,
    UnknownStateRepresentation,
)
from scheduling.models import AutomationRecord, Event
from scheduling.runner import ScheduleRunner

TZ = ZoneInfo('Europe/Moscow')
SATURDAY_10AM = datetime(2024, 1, 13, 10, 0, tzinfo=TZ)
WEDNESDAY_NOON = datetime(2024, 1, 17, 12, 0, tzinfo=TZ)


class FakeEventRepository:
    """In-memory event repository."""

    def __init__(self, events=()):
        self.events = list(events)

    def latch_events(self, now):
        return list(self.events)

    def active_events(self, now):
        return list(self.events)


class FakeAutomationStore:
    """In-memory automation store keyed by name."""

    def __init__(self, automations=None):
        self.automations = automations or {}
        self.writes = []

    def find_by_name(self, name):
        if name not in self.automations:
            raise AutomationNotFound(name)
        automation_id, attributes = self.automations[name]
        return AutomationRecord.resolve(automation_id, name, attributes)

    def set_enabled(self, record, enabled):
        self.writes.append((record.automation_id, record.state_field, enabled))
        _, attributes = self.automations[record.name]
        attributes[record.state_field] = record.stored_value(enabled)


def make_runner(config, events=(), automations=None):
    """Build a runner over in-memory fakes."""
    store = FakeAutomationStore(automations)
    engine = DecisionEngine(config, FakeEventRepository(events))
    return ScheduleRunner(config, engine, store), store


@pytest.fixture
def config():
    return ScheduleConfig(automation_name='Weekend Auto-Reply')


class TestScheduleRunner:
    """Test cases for applying decisions."""

    def test_enables_on_saturday(self, config):
        """Test a disabled automation is enabled on a weekend."""
        runner, store = make_runner(
            config, automations={'Weekend Auto-Reply': (1, {'enabled': False})}
        )

        result = runner.run(SATURDAY_10AM)

        assert result.changed is True
        assert result.current_enabled is False
        assert result.desired_enabled is True
        assert store.writes == [(1, 'enabled', True)]

    def test_no_write_when_state_matches(self, config, caplog):
        """Test no write happens when current equals desired."""
        runner, store = make_runner(
            config, automations={'Weekend Auto-Reply': (1, {'enabled': True})}
        )

        with caplog.at_level(logging.INFO, logger='scheduling.runner'):
            result = runner.run(SATURDAY_10AM)

        assert result.changed is False
        assert store.writes == []
        assert any('no change' in record.message for record in caplog.records)

    def test_second_run_is_noop(self, config):
        """Test running twice writes only once."""
        runner, store = make_runner(
            config, automations={'Weekend Auto-Reply': (1, {'enabled': True})}
        )

        first = runner.run(WEDNESDAY_NOON)
        second = runner.run(WEDNESDAY_NOON)

        assert first.changed is True
        assert second.changed is False
        assert first.desired_enabled == second.desired_enabled
        assert len(store.writes) == 1

    def test_disabled_field_is_written_inverted(self, config):
        """Test automations storing 'disabled' get the inverse value."""
        automations = {'Weekend Auto-Reply': (7, {'disabled': True})}
        runner, store = make_runner(config, automations=automations)

        result = runner.run(SATURDAY_10AM)

        assert result.current_enabled is False
        assert store.writes == [(7, 'disabled', False)]
        assert automations['Weekend Auto-Reply'][1] == {'disabled': False}

    def test_is_enabled_field(self, config):
        """Test automations storing 'is_enabled' are toggled through it."""
        runner, store = make_runner(
            config, automations={'Weekend Auto-Reply': (3, {'is_enabled': True})}
        )

        runner.run(WEDNESDAY_NOON)

        assert store.writes == [(3, 'is_enabled', False)]

    def test_hard_disable_turns_automation_off(self, config):
        """Test a disable latch switches an enabled automation off."""
        events = [
            Event('1', 'BOT DISABLE', SATURDAY_10AM - timedelta(days=5)),
            Event('2', 'BOT ON', SATURDAY_10AM - timedelta(hours=1)),
        ]
        runner, store = make_runner(
            config, events, {'Weekend Auto-Reply': (1, {'enabled': True})}
        )

        result = runner.run(SATURDAY_10AM)

        assert result.desired_enabled is False
        assert 'hard disabled' in result.reason
        assert store.writes == [(1, 'enabled', False)]

    def test_automation_not_found(self, config):
        """Test a missing automation aborts the run."""
        runner, store = make_runner(config, automations={})

        with pytest.raises(AutomationNotFound) as excinfo:
            runner.run(SATURDAY_10AM)

        assert isinstance(excinfo.value, ConfigurationError)
        assert 'Weekend Auto-Reply' in str(excinfo.value)
        assert store.writes == []

    def test_unknown_state_representation(self, config):
        """Test an automation without a state field aborts the run."""
        runner, store = make_runner(
            config, automations={'Weekend Auto-Reply': (9, {'active': True})}
        )

        with pytest.raises(UnknownStateRepresentation) as excinfo:
            runner.run(SATURDAY_10AM)

        assert 'id=9' in str(excinfo.value)
        assert store.writes == []

    def test_verbose_steps_logged_at_info(self, config, caplog):
        """Test verbose runs log each step at INFO."""
        runner, _ = make_runner(
            config, automations={'Weekend Auto-Reply': (1, {'enabled': True})}
        )

        with caplog.at_level(logging.INFO, logger='scheduling.runner'):
            runner.run(SATURDAY_10AM)

        messages = [record.message for record in caplog.records]
        assert any(msg.startswith('[bot-schedule] now=') for msg in messages)
        assert any('latch: disable_at=None' in msg for msg in messages)
        assert any('active: override_off=False' in msg for msg in messages)
        assert any("automation='Weekend Auto-Reply'" in msg for msg in messages)

    def test_quiet_run_logs_only_outcome(self, caplog):
        """Test non-verbose runs keep step lines out of INFO."""
        config = ScheduleConfig(automation_name='Weekend Auto-Reply', verbose=False)
        runner, _ = make_runner(
            config, automations={'Weekend Auto-Reply': (1, {'enabled': False})}
        )

        with caplog.at_level(logging.INFO, logger='scheduling.runner'):
            runner.run(SATURDAY_10AM)

        messages = [record.message for record in caplog.records]
        assert messages == ['[bot-schedule] changed: enabled=True']


class TestAutomationRecord:
    """Test cases for state field resolution."""

    def test_enabled_takes_precedence(self):
        """Test 'enabled' wins when several fields are present."""
        record = AutomationRecord.resolve(1, 'x', {'is_enabled': False, 'enabled': True})

        assert record.state_field == 'enabled'
        assert record.current_enabled is True

    def test_disabled_is_inverted(self):
        """Test 'disabled' reads and writes inverted."""
        record = AutomationRecord.resolve(1, 'x', {'disabled': False})

        assert record.inverted is True
        assert record.current_enabled is True
        assert record.stored_value(False) is True
