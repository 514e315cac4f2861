"""Admin API: aggregated stats, metric reset and simulated ops actions."""

import random
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Query, Request

from devops_stack.api.deps import get_metrics, get_settings
from devops_stack.api.routes.status import performance_block
from devops_stack.config.settings import Settings
from devops_stack.core import system
from devops_stack.core.logging import get_logger
from devops_stack.core.metrics import MetricsAggregator

router = APIRouter(prefix="/admin/api", tags=["admin"])
logger = get_logger(__name__)

_SIMULATED_SERVICES = {
    "database": "connected",
    "cache": "connected",
    "external_apis": "healthy",
    "disk_space": "sufficient",
}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _client(request: Request) -> str:
    return request.client.host if request.client else "unknown"


@router.get("/stats")
def stats(
    request: Request,
    metrics: MetricsAggregator = Depends(get_metrics),
    settings: Settings = Depends(get_settings),
) -> dict:
    snapshot = metrics.get_snapshot()
    summary = metrics.get_health_summary()
    perf = performance_block(snapshot)
    logger.info("Admin stats requested", extra={"extra_fields": {"ip": _client(request)}})
    return {
        "overview": {
            "status": "running",
            "uptime": system.uptime_seconds(),
            "environment": settings.environment,
            "version": settings.app_version,
            "python_version": system.platform_info()["python_version"],
        },
        "performance": {
            "requests": {
                "total": snapshot.request_total,
                "success": snapshot.request_success,
                "errors": snapshot.request_errors,
                "success_rate": summary.success_rate,
            },
            "response_times": {
                "average": perf["average_response_time_ms"],
                "min": perf["min_response_time_ms"],
                "max": perf["max_response_time_ms"],
            },
            "traffic": {
                "requests_per_minute": snapshot.requests_per_minute,
                "peak_rpm": snapshot.peak_requests_per_minute,
            },
        },
        "system": {
            "memory": system.memory_info(),
            "cpu": system.cpu_info(),
            "platform": system.platform_info(),
        },
        "health": dict(_SIMULATED_SERVICES, healthy=summary.healthy),
        "recent_activity": [r.to_dict() for r in snapshot.recent_requests],
        "timestamp": snapshot.timestamp.isoformat(),
    }


@router.post("/cache/clear")
def clear_cache(request: Request, metrics: MetricsAggregator = Depends(get_metrics)) -> dict:
    metrics.reset()
    logger.info("Cache cleared by admin", extra={"extra_fields": {"ip": _client(request)}})
    return {"success": True, "message": "Cache cleared successfully", "timestamp": _now()}


@router.get("/system")
def system_info() -> dict:
    return {
        "server": system.platform_info(),
        "cpu": system.cpu_info(),
        "memory": system.memory_info(),
        "process": {"uptime": system.uptime_seconds()},
        "timestamp": _now(),
    }


@router.post("/restart")
def restart(request: Request) -> dict:
    logger.warning(
        "Application restart requested", extra={"extra_fields": {"ip": _client(request)}}
    )
    return {
        "message": "Restart command received",
        "note": "In production, this would restart the application",
        "timestamp": _now(),
    }


@router.get("/health")
def admin_health() -> dict:
    return {
        "status": "healthy",
        "services": {
            "web_server": "running",
            "database": "connected",
            "cache": "connected",
            "file_system": "accessible",
            "external_apis": "responding",
        },
        "uptime": system.uptime_seconds(),
        "timestamp": _now(),
    }


@router.get("/config")
def config(settings: Settings = Depends(get_settings)) -> dict:
    return {
        "environment": settings.environment,
        "version": settings.app_version,
        "port": settings.port,
        "settings": {
            "logging": {"level": settings.log_level, "format": "json"},
            "metrics": {
                "periodic_recompute": settings.enable_periodic_recompute,
                "recompute_interval_seconds": settings.recompute_interval_seconds,
            },
            "dashboard": {
                "enabled": settings.dashboard_enabled,
                "refresh_seconds": settings.dashboard_refresh_seconds,
            },
            "alerts": {
                "error_rate_percent": settings.error_rate_threshold,
                "response_time_ms": settings.response_time_threshold_ms,
            },
            "security": {"cors_origins": settings.cors_origins},
        },
        "build_info": {
            "commit": settings.build.commit_hash,
            "build_date": settings.build.build_date,
            "branch": settings.build.branch,
        },
        "timestamp": _now(),
    }


@router.get("/logs")
def admin_logs(
    level: str = "info",
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
) -> dict:
    # Simulated lines; real logs go to stdout.
    now = datetime.now(timezone.utc)
    lines = [
        {
            "id": offset + i + 1,
            "timestamp": (now - timedelta(minutes=i)).isoformat(),
            "level": random.choice(["info", "warn", "error"]),
            "message": f"Sample log message {offset + i + 1}",
            "source": random.choice(["app", "api", "admin"]),
            "metadata": {"endpoint": random.choice(["/api/users", "/api/data", "/health"])},
        }
        for i in range(limit)
    ]
    return {
        "logs": lines,
        "total": 1000,
        "limit": limit,
        "offset": offset,
        "level": level,
        "timestamp": _now(),
    }
