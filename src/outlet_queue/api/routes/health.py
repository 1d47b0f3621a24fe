"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ...errors import RepositoryError
from ...services.queue.service import QueueService
from ..dependencies import get_queue_service

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/database", status_code=status.HTTP_200_OK)
def check_database(service: QueueService = Depends(get_queue_service)) -> dict:
    """Check that the configured repository answers."""
    backend = service.config.persistence_backend
    try:
        service.repository.ping()
    except RepositoryError as exc:
        return {
            "backend": backend,
            "connected": False,
            "error": exc.message,
            "message": f"Database connection error: {exc.message}",
        }
    return {"backend": backend, "connected": True, "message": "Database connected."}
