from datetime import datetime, timezone


def utc_now() -> datetime:
    """Naive UTC timestamp, comparable across SQLite, PostgreSQL and memory."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
