"""Service status, version and metrics reporting."""

import math
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query

from devops_stack.api.deps import get_metrics, get_settings, get_store
from devops_stack.config.settings import Settings
from devops_stack.core import system
from devops_stack.core.metrics import MetricsAggregator, MetricsSnapshot
from devops_stack.core.store import InMemoryStore

router = APIRouter(prefix="/api", tags=["status"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _ms(value: float) -> Optional[float]:
    """JSON has no infinity; an empty sample buffer reports null."""
    if math.isinf(value):
        return None
    return round(value, 2)


def performance_block(snapshot: MetricsSnapshot) -> dict:
    return {
        "average_response_time_ms": _ms(snapshot.average_response_time_ms),
        "min_response_time_ms": _ms(snapshot.min_response_time_ms),
        "max_response_time_ms": _ms(snapshot.max_response_time_ms),
        "samples": len(snapshot.response_time_samples),
    }


@router.get("/status")
def status(
    metrics: MetricsAggregator = Depends(get_metrics),
    store: InMemoryStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> dict:
    snapshot = metrics.get_snapshot()
    counts = store.counts()
    memory = system.memory_info()
    return {
        "status": "running",
        "version": settings.app_version,
        "environment": settings.environment,
        "uptime": system.uptime_seconds(),
        "requests_total": snapshot.request_total,
        "requests_per_minute": snapshot.requests_per_minute,
        "response_time_avg": _ms(snapshot.average_response_time_ms),
        "memory_usage": {
            "used_mb": memory["used_mb"],
            "total_mb": memory["total_mb"],
            "usage_percent": memory["usage_percent"],
        },
        "data_count": counts["data"],
        "users_count": counts["users"],
        "timestamp": _now(),
    }


@router.get("/version")
def version(settings: Settings = Depends(get_settings)) -> dict:
    return {
        "version": settings.app_version,
        "build_date": settings.build.build_date,
        "commit_hash": settings.build.commit_hash,
        "branch": settings.build.branch,
        "python_version": system.platform_info()["python_version"],
        "environment": settings.environment,
    }


@router.get("/metrics")
def metrics_report(
    metrics: MetricsAggregator = Depends(get_metrics),
    store: InMemoryStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> dict:
    snapshot = metrics.get_snapshot()
    counts = store.counts()
    host = system.platform_info()
    return {
        "application": {
            "name": settings.app_name,
            "version": settings.app_version,
            "uptime_seconds": system.uptime_seconds(),
            "environment": settings.environment,
            "pid": host["pid"],
            "requests": {
                "total": snapshot.request_total,
                "success": snapshot.request_success,
                "errors": snapshot.request_errors,
                "per_minute": snapshot.requests_per_minute,
                "peak_per_minute": snapshot.peak_requests_per_minute,
            },
            "performance": performance_block(snapshot),
            "data": {"items_count": counts["data"], "users_count": counts["users"]},
        },
        "system": {
            "hostname": host["hostname"],
            "platform": host["platform"],
            "architecture": host["architecture"],
            "python_version": host["python_version"],
            "cpu": system.cpu_info(),
            "memory": system.memory_info(),
        },
        "timestamp": snapshot.timestamp.isoformat(),
    }


@router.get("/metrics/period")
def metrics_for_period(
    minutes: int = Query(default=5, ge=1, le=1440),
    metrics: MetricsAggregator = Depends(get_metrics),
) -> dict:
    return metrics.get_metrics_for_period(minutes).to_dict()
