"""API route registrations."""

from . import health, safety

__all__ = ["health", "safety"]
