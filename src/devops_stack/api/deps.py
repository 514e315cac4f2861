"""Request-scoped accessors for objects owned by the application factory."""

from fastapi import Request

from devops_stack.config.settings import Settings
from devops_stack.core.metrics import MetricsAggregator
from devops_stack.core.store import InMemoryStore


def get_metrics(request: Request) -> MetricsAggregator:
    return request.app.state.metrics


def get_store(request: Request) -> InMemoryStore:
    return request.app.state.store


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
