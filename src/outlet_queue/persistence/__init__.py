"""Repository backends for the queue core."""

from __future__ import annotations

import logging

from ..config import Settings
from .base import QueueRepository
from .memory import InMemoryQueueRepository

logger = logging.getLogger(__name__)


def build_repository(config: Settings) -> QueueRepository:
    """Create the repository selected by ``config.persistence_backend``."""
    if config.persistence_backend == "supabase":
        from ..db.supabase import create_supabase_client
        from .supabase import SupabaseQueueRepository

        logger.info("Using Supabase queue repository")
        return SupabaseQueueRepository(create_supabase_client(config), config)

    logger.info(f"Using in-memory queue repository seeded from {config.outlets_file}")
    return InMemoryQueueRepository.from_file(config.outlets_file, config)


__all__ = ["QueueRepository", "InMemoryQueueRepository", "build_repository"]
