"""Server health utilities.

`get_health` reports process status, start time, uptime and the installed
package version. When a collection store is passed, the number of persisted
collections is included as a cheap backend check.
"""
from datetime import datetime, timezone
from importlib import metadata
import logging
import time
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

# record process start time at import
_START_TIME = time.time()


def _package_version() -> str:
    try:
        return metadata.version("rentals-store")
    except metadata.PackageNotFoundError:
        return "unknown"


async def get_health(store: Optional[Any] = None) -> Dict[str, Any]:
    """Return a dict representing server health.

    Fields:
    - status: 'ok', or 'degraded' when the storage check fails
    - start_time: ISO 8601 UTC timestamp when the process started
    - uptime_seconds: integer seconds since start
    - version: installed package version
    - collections: number of persisted collections (only with a store)
    """
    now = time.time()
    start_dt = datetime.fromtimestamp(_START_TIME, tz=timezone.utc)
    health: Dict[str, Any] = {
        "status": "ok",
        "start_time": start_dt.isoformat(),
        "uptime_seconds": int(now - _START_TIME),
        "version": _package_version(),
    }
    if store is not None:
        try:
            health["collections"] = len(await store.collections())
        except Exception as e:
            logger.warning("Storage check failed: %s", e)
            health["status"] = "degraded"
            health["collections"] = None
    return health
