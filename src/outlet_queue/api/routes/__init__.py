"""Route group exports."""

from . import customers, health, outlets, queue

__all__ = ["customers", "health", "outlets", "queue"]
