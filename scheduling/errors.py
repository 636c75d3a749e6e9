"""Errors raised while resolving configuration and automation records."""


class ConfigurationError(Exception):
    """The job cannot run with the current configuration or data."""


class AutomationNotFound(ConfigurationError):
    """No automation record matches the configured name."""

    def __init__(self, name: str):
        super().__init__(f"Automation not found by name: {name!r}")
        self.name = name


class UnknownStateRepresentation(ConfigurationError):
    """Automation record has none of the recognised state fields."""

    def __init__(self, automation_id):
        super().__init__(
            f"Don't know how to read enabled state for automation "
            f"id={automation_id}"
        )
        self.automation_id = automation_id


class MalformedEvent(Exception):
    """Event row in the event table cannot be read."""

    def __init__(self, event_id, detail: str):
        super().__init__(f"Malformed event id={event_id}: {detail}")
        self.event_id = event_id
