from .settings import BuildInfo, Settings

__all__ = ["BuildInfo", "Settings"]
