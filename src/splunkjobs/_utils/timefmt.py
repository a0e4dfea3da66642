"""Time formatting for Splunk search parameters."""

from datetime import datetime, timezone

SPLUNK_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S"


def format_time(value: datetime) -> str:
    """
    Format a datetime for earliest_time/latest_time parameters.

    Aware datetimes are converted to UTC; naive ones are taken as UTC.

    Example:
        params = {"earliest_time": format_time(datetime(2024, 1, 1))}
    """
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(SPLUNK_TIME_FORMAT)


def parse_time(value: str) -> datetime:
    """Parse a Splunk timestamp such as 2006-01-02T15:04:00.000+00:00."""
    return datetime.fromisoformat(value.strip())
