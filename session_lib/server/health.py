"""Server health utilities.

Provides `get_health` returning server status, start time, uptime and the
package version, and `get_version` for the bare version endpoint.
"""
from datetime import datetime, timezone
import time

from session_lib import __version__

# record process start time at import
_START_TIME = time.time()


def get_version() -> str:
    return __version__


def get_health() -> dict:
    """Return a dict representing server health.

    Fields:
    - status: 'ok'
    - start_time: ISO 8601 UTC timestamp when the process started
    - uptime_seconds: integer seconds since start
    - version: package version
    """
    now = time.time()
    uptime = int(now - _START_TIME)
    start_dt = datetime.fromtimestamp(_START_TIME, tz=timezone.utc)
    return {
        "status": "ok",
        "start_time": start_dt.isoformat(),
        "uptime_seconds": uptime,
        "version": get_version(),
    }
