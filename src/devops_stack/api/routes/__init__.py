from . import admin, health, resources, status

__all__ = ["admin", "health", "resources", "status"]
