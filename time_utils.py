import time
from datetime import datetime, timezone

def now_ms() -> int:
    return int(time.time() * 1000)

def format_time_ago(timestamp_ms) -> str:
    """
    Human readable age of a millisecond timestamp; 0 means never fetched
    """
    if isinstance(timestamp_ms, datetime):
        timestamp_ms = timestamp_ms.timestamp() * 1000

    if not timestamp_ms or timestamp_ms <= 0:
        return "Never"

    now = datetime.now(timezone.utc)
    dt = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    seconds = (now - dt).total_seconds()

    intervals = (
        ('day', 86400),
        ('hour', 3600),
        ('min', 60),
        ('sec', 1)
    )

    parts = []
    for name, secs in intervals:
        value = int(seconds // secs)
        if value > 0:
            plural = 's' if value != 1 else ''
            parts.append(f"{value} {name}{plural}")
            seconds -= value * secs

        if len(parts) >= 2:
            break

    return " ".join(parts) + " ago" if parts else "Just now"
