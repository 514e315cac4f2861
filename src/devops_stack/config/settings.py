"""Configuration settings for the application."""
import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

load_dotenv()

DEV_ORIGINS = ["http://localhost:3000", "http://localhost:3001", "http://127.0.0.1:3000"]
PROD_ORIGINS = ["https://devops-stack.example.com", "https://staging.devops-stack.example.com"]


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() not in {"0", "false", "no", "off", ""}


@dataclass
class BuildInfo:
    commit_hash: str = "unknown"
    build_date: str = "unknown"
    branch: str = "unknown"
    build_number: str = "unknown"


@dataclass
class Settings:
    app_name: str = "DevOps Stack"
    app_version: str = "1.0.0"
    environment: str = "development"
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    cors_origins: List[str] = field(default_factory=lambda: list(DEV_ORIGINS))
    # Timer is never started in tests.
    enable_periodic_recompute: bool = False
    recompute_interval_seconds: int = 60
    dashboard_enabled: bool = False
    dashboard_refresh_seconds: int = 10
    error_rate_threshold: int = 5
    response_time_threshold_ms: int = 1000
    build: BuildInfo = field(default_factory=BuildInfo)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_test(self) -> bool:
        return self.environment == "test"

    @classmethod
    def from_env(cls) -> "Settings":
        environment = os.getenv("APP_ENV", "development")
        origins = os.getenv("CORS_ORIGINS")
        if origins:
            cors_origins = [o.strip() for o in origins.split(",") if o.strip()]
        else:
            cors_origins = list(PROD_ORIGINS if environment == "production" else DEV_ORIGINS)
        return cls(
            app_version=os.getenv("APP_VERSION", "1.0.0"),
            environment=environment,
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", 3000)),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            cors_origins=cors_origins,
            enable_periodic_recompute=(
                environment != "test" and _env_bool("ENABLE_RATE_RECOMPUTE", True)
            ),
            recompute_interval_seconds=int(os.getenv("RATE_RECOMPUTE_SECONDS", 60)),
            dashboard_enabled=environment != "test" and _env_bool("DASHBOARD_ENABLED", True),
            dashboard_refresh_seconds=int(os.getenv("DASHBOARD_REFRESH_SECONDS", 10)),
            error_rate_threshold=int(os.getenv("ALERT_ERROR_RATE", 5)),
            response_time_threshold_ms=int(os.getenv("ALERT_RESPONSE_TIME_MS", 1000)),
            build=BuildInfo(
                commit_hash=os.getenv("COMMIT_HASH", "unknown"),
                build_date=os.getenv("BUILD_DATE", "unknown"),
                branch=os.getenv("BRANCH", "unknown"),
                build_number=os.getenv("BUILD_NUMBER", "unknown"),
            ),
        )
