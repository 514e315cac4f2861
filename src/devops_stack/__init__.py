"""DevOps Stack: demo service with health, metrics and CRUD endpoints."""

__version__ = "1.0.0"
