from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def create_timestamp() -> str:
    """ISO-8601 timestamp used in WebSocket envelopes."""
    return utc_now().isoformat()
