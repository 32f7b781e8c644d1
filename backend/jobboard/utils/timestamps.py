from datetime import datetime, timezone


def utc_now() -> str:
    # Microsecond precision; newest-first ordering relies on it.
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def month_start() -> str:
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-01T00:00:00")
