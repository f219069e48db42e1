"""
Doctor repository - read-only doctor directory with a Redis read-through cache
"""

from typing import Optional, Dict
import logging

from pydantic import ValidationError as PydanticValidationError

from ..models.billing import Doctor
from ....core.cache import CacheManager, DOCTOR_DIRECTORY_KEY
from ....core.metrics import doctor_cache_hits, doctor_cache_misses
from ....registries import PrimaryRegistry


logger = logging.getLogger(__name__)


class DoctorRepository:
    """Loads doctors/ from the primary registry"""

    def __init__(self, registry: PrimaryRegistry, cache_manager: Optional[CacheManager] = None):
        self.registry = registry
        self.cache_manager = cache_manager

    async def load_all(self, use_cache: bool = True) -> Dict[str, Doctor]:
        """Every doctor keyed by id; malformed nodes are skipped"""
        documents = None
        if use_cache and self.cache_manager:
            documents = await self.cache_manager.get(DOCTOR_DIRECTORY_KEY)
            if documents is not None:
                doctor_cache_hits.inc()
                logger.debug(f"Doctor directory served from cache ({len(documents)} doctors)")

        if documents is None:
            documents = await self.registry.list_doctors()
            if self.cache_manager:
                doctor_cache_misses.inc()
                await self.cache_manager.set(DOCTOR_DIRECTORY_KEY, documents)

        doctors = {}
        for doctor_id, document in documents.items():
            try:
                doctors[doctor_id] = Doctor.model_validate({**document, "id": doctor_id})
            except PydanticValidationError as e:
                logger.warning(f"Skipping malformed doctor {doctor_id}: {e}")
        return doctors

    async def invalidate(self) -> bool:
        if not self.cache_manager:
            return False
        return await self.cache_manager.delete(DOCTOR_DIRECTORY_KEY)
