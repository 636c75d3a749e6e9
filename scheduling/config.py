"""Environment configuration for the schedule toggle."""
import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from scheduling.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_AUTOMATION_NAME = 'Test Weekend Auto-Reply'
DEFAULT_TIMEZONE = 'Europe/Moscow'
DEFAULT_MODE = 'weekends'
KNOWN_MODES = ('on', 'off', 'weekends')


def env(environ: Mapping[str, str], key: str, default: Optional[str] = None) -> Optional[str]:
    """
    Read an environment value, treating blank strings as unset.

    Args:
        environ: Environment mapping
        key: Variable name
        default: Value returned when the variable is missing or blank

    Returns:
        The raw value or the default
    """
    value = environ.get(key)
    if value is not None and value.strip():
        return value
    return default


@dataclass(frozen=True)
class ScheduleConfig:
    """Immutable settings for one toggle run."""
    automation_name: str = DEFAULT_AUTOMATION_NAME
    timezone_name: str = DEFAULT_TIMEZONE
    default_mode: str = DEFAULT_MODE
    verbose: bool = True
    events_table_name: str = 'calendar-events'
    automations_table_name: str = 'automations'
    log_level: str = 'INFO'

    def __post_init__(self):
        try:
            ZoneInfo(self.timezone_name)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigurationError(
                f"Unknown time zone: {self.timezone_name!r}"
            ) from e

        mode = self.default_mode.strip().lower()
        object.__setattr__(self, 'default_mode', mode)
        if mode not in KNOWN_MODES:
            logger.warning(
                f"Unrecognised default mode {mode!r}, falling back to weekends"
            )

    @property
    def timezone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone_name)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'ScheduleConfig':
        """
        Build configuration from environment variables.

        Args:
            environ: Mapping to read from (default: os.environ)

        Returns:
            ScheduleConfig instance

        Raises:
            ConfigurationError: If the time zone is unknown
        """
        if environ is None:
            environ = os.environ

        return cls(
            automation_name=env(environ, 'BOT_AUTOMATION_NAME', DEFAULT_AUTOMATION_NAME),
            timezone_name=env(environ, 'BOT_TIMEZONE', DEFAULT_TIMEZONE),
            default_mode=env(environ, 'BOT_DEFAULT_MODE', DEFAULT_MODE),
            verbose=env(environ, 'BOT_VERBOSE', '1') == '1',
            events_table_name=env(environ, 'EVENTS_TABLE_NAME', 'calendar-events'),
            automations_table_name=env(environ, 'AUTOMATIONS_TABLE_NAME', 'automations'),
            log_level=env(environ, 'LOG_LEVEL', 'INFO')
        )
