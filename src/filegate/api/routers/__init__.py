"""API routers for filegate."""

from filegate.api.routers import files, health

__all__ = ["files", "health"]
