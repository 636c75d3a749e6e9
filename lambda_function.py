"""AWS Lambda handler for the calendar-driven bot schedule toggle."""
import json
import logging
import os
import sys
import time
from dataclasses import asdict
from typing import Dict, Any

from scheduling.config import ScheduleConfig, env
from scheduling.decision_engine import DecisionEngine
from scheduling.models import RunResult
from scheduling.runner import ScheduleRunner
from storage.dynamodb_automations import DynamoDBAutomationStore
from storage.dynamodb_events import DynamoDBEventRepository


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def run_toggle(config: ScheduleConfig) -> RunResult:
    """
    Wire the DynamoDB collaborators and run the toggle once.

    Args:
        config: Settings for this run

    Returns:
        RunResult for the run
    """
    repository = DynamoDBEventRepository(table_name=config.events_table_name)
    store = DynamoDBAutomationStore(table_name=config.automations_table_name)
    engine = DecisionEngine(config, repository)
    return ScheduleRunner(config, engine, store).run()


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Main Lambda handler, invoked by an EventBridge schedule.

    Failures are logged and re-raised so the invocation is recorded as
    failed and the next scheduled run starts clean.

    Args:
        event: EventBridge event payload
        context: Lambda context object

    Returns:
        Response dict with statusCode and the run summary
    """
    start_time = time.time()
    logger = logging.getLogger(__name__)

    setup_logging(env(os.environ, 'LOG_LEVEL', 'INFO'))

    try:
        config = ScheduleConfig.from_env()

        logger.info(
            "Lambda execution started",
            extra={
                'automation_name': config.automation_name,
                'timezone': config.timezone_name,
                'default_mode': config.default_mode
            }
        )

        result = run_toggle(config)

    except Exception as e:
        duration = time.time() - start_time
        logger.error(
            f"Lambda execution failed: {str(e)}",
            extra={
                'duration_seconds': round(duration, 2),
                'error_type': type(e).__name__
            },
            exc_info=True
        )
        raise

    duration = time.time() - start_time
    logger.info(
        f"[bot-schedule] summary automation='{result.automation_name}' "
        f"enabled={result.desired_enabled} changed={result.changed} "
        f"reason={result.reason}",
        extra={'duration_seconds': round(duration, 2)}
    )

    return {
        'statusCode': 200,
        'body': json.dumps({
            'message': 'State changed' if result.changed else 'No change',
            'result': asdict(result),
            'duration_seconds': round(duration, 2)
        })
    }


def main() -> int:
    """Run once from the command line; exit status 1 on any failure."""
    try:
        lambda_handler({}, None)
    except Exception:
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
