"""Process runtime information for the health endpoints."""

from __future__ import annotations

import platform
import resource
import sys
import time

_STARTED_AT = time.monotonic()


def process_uptime() -> float:
    """Seconds elapsed since this module was first imported."""
    return time.monotonic() - _STARTED_AT


def memory_usage() -> dict:
    """Peak resident set size of the process in MB."""
    max_rss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # ru_maxrss is bytes on macOS, KiB elsewhere
    peak_bytes = max_rss if sys.platform == "darwin" else max_rss * 1024
    return {"maxRss": round(peak_bytes / 1024 / 1024), "unit": "MB"}


def format_uptime(seconds: float) -> str:
    """Format seconds as e.g. ``1d 2h 3m 4s``.

    Days, hours and minutes appear only when non-zero. Seconds appear when
    non-zero or when no other unit was emitted, so 0 gives ``0s`` and
    3600 gives ``1h``.
    """
    seconds = int(seconds)
    days, seconds = divmod(seconds, 86400)
    hours, seconds = divmod(seconds, 3600)
    minutes, seconds = divmod(seconds, 60)

    parts = []
    if days > 0:
        parts.append(f"{days}d")
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if not parts or seconds > 0:
        parts.append(f"{seconds}s")
    return " ".join(parts)


def runtime_info() -> dict:
    uptime = process_uptime()
    return {
        "memory": memory_usage(),
        "uptime": {"seconds": round(uptime), "formatted": format_uptime(uptime)},
        "pythonVersion": platform.python_version(),
        "platform": sys.platform,
    }
