"""
Host and process facts for the health, metrics and admin endpoints.
"""

import os
import platform
import resource
import socket
import sys
import time
from typing import Any, Dict, List

_MB = 1024 * 1024
_STARTED_AT = time.monotonic()


def uptime_seconds() -> float:
    return round(time.monotonic() - _STARTED_AT, 3)


def _sysconf(name: str) -> int:
    try:
        return int(os.sysconf(name))
    except (ValueError, OSError, AttributeError):
        return 0


def load_average() -> List[float]:
    try:
        return [round(v, 2) for v in os.getloadavg()]
    except OSError:
        return [0.0, 0.0, 0.0]


def memory_info() -> Dict[str, int]:
    page = _sysconf("SC_PAGE_SIZE")
    total = page * _sysconf("SC_PHYS_PAGES")
    free = page * _sysconf("SC_AVPHYS_PAGES")
    used = max(total - free, 0)
    # ru_maxrss is KiB on Linux.
    rss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss * 1024
    return {
        "total_mb": total // _MB,
        "free_mb": free // _MB,
        "used_mb": used // _MB,
        "usage_percent": round(used * 100 / total) if total else 0,
        "process_rss_mb": rss // _MB,
    }


def cpu_info() -> Dict[str, Any]:
    usage = resource.getrusage(resource.RUSAGE_SELF)
    load = load_average()
    return {
        "cores": os.cpu_count() or 1,
        "model": platform.processor() or platform.machine() or "unknown",
        "usage_user_s": round(usage.ru_utime, 3),
        "usage_system_s": round(usage.ru_stime, 3),
        "load_average": load,
        "load_1min": load[0],
        "load_5min": load[1],
        "load_15min": load[2],
    }


def platform_info() -> Dict[str, Any]:
    return {
        "hostname": socket.gethostname(),
        "platform": sys.platform,
        "architecture": platform.machine(),
        "python_version": platform.python_version(),
        "pid": os.getpid(),
    }
