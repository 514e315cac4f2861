"""Health, liveness and readiness probes."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from devops_stack.api.deps import get_metrics, get_settings
from devops_stack.config.settings import Settings
from devops_stack.core import system
from devops_stack.core.logging import get_logger
from devops_stack.core.metrics import MetricsAggregator

router = APIRouter(prefix="/health", tags=["health"])
logger = get_logger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("")
def health(
    metrics: MetricsAggregator = Depends(get_metrics),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    """Liveness plus the aggregate health verdict."""
    summary = metrics.get_health_summary()
    host = system.platform_info()
    memory = system.memory_info()
    payload = {
        "status": "healthy" if summary.healthy else "degraded",
        "timestamp": _now(),
        "uptime": system.uptime_seconds(),
        "version": settings.app_version,
        "environment": settings.environment,
        "python_version": host["python_version"],
        "platform": host["platform"],
        "architecture": host["architecture"],
        "memory": {
            "process_rss_mb": memory["process_rss_mb"],
            "total_mb": memory["total_mb"],
            "free_mb": memory["free_mb"],
        },
        "system": {
            "hostname": host["hostname"],
            "cpus": system.cpu_info()["cores"],
            "load_average": system.load_average(),
        },
        "metrics": summary.to_dict(),
    }
    logger.info("Health check requested", extra={"extra_fields": {"healthy": summary.healthy}})
    return JSONResponse(payload)


@router.get("/detailed")
def health_detailed(settings: Settings = Depends(get_settings)) -> JSONResponse:
    # Dependency checks are simulated, there are no backing services.
    checks = {
        "server": "healthy",
        "database": "healthy",
        "cache": "healthy",
        "external_apis": "healthy",
    }
    overall = "healthy" if all(v == "healthy" for v in checks.values()) else "degraded"
    payload = {
        "status": overall,
        "timestamp": _now(),
        "checks": checks,
        "uptime": system.uptime_seconds(),
        "version": settings.app_version,
        "build_info": {
            "commit": settings.build.commit_hash,
            "build_date": settings.build.build_date,
            "branch": settings.build.branch,
        },
    }
    return JSONResponse(payload, status_code=200 if overall == "healthy" else 503)


@router.get("/live")
def live() -> dict:
    return {"status": "alive", "timestamp": _now()}


@router.get("/ready")
def ready() -> dict:
    return {"status": "ready", "timestamp": _now()}
