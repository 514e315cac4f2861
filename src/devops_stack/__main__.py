"""Run the service with uvicorn.

Usage:
    python -m devops_stack
"""

import uvicorn

from devops_stack.config.settings import Settings
from devops_stack.core.logging import get_logger, setup_logging

logger = get_logger(__name__)


def main() -> None:
    settings = Settings.from_env()
    setup_logging(settings.log_level)
    logger.info(f"Starting {settings.app_name} on {settings.host}:{settings.port}")
    uvicorn.run(
        "devops_stack.api.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
