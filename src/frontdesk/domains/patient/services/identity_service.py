"""
Identity service - decides which UHID a submission is booked under
"""

import logging
import random
import re
import secrets
from dataclasses import dataclass
from typing import Optional

from ..models.patient import DirectoryEntry
from ....core.config import IdentityConfig, get_identity_config
from ....core.errors import IdentityExhausted
from ....registries import PrimaryRegistry


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedIdentity:
    uhid: str
    is_new: bool


class IdentityAllocator:
    """
    Reuses a confirmed suggestion's UHID verbatim, or mints a new one.

    New UHIDs are drawn uniformly from the configured alphabet. When a primary
    registry is supplied each candidate is checked for existence first and
    regenerated, up to `max_attempts` times. No state is kept between calls.
    """

    def __init__(
        self,
        config: Optional[IdentityConfig] = None,
        registry: Optional[PrimaryRegistry] = None,
        rng: Optional[random.Random] = None,
    ):
        self.config = config or get_identity_config()
        self.registry = registry
        self._rng = rng or secrets.SystemRandom()
        self.pattern = re.compile(rf"^[{re.escape(self.config.alphabet)}]{{{self.config.length}}}$")

    def generate(self) -> str:
        """Draw a fresh candidate UHID"""
        return "".join(self._rng.choice(self.config.alphabet) for _ in range(self.config.length))

    def is_valid(self, uhid: str) -> bool:
        return bool(self.pattern.match(uhid or ""))

    async def resolve(self, selected: Optional[DirectoryEntry] = None) -> ResolvedIdentity:
        """
        Decide the UHID for a submission

        Args:
            selected: Confirmed directory entry, if any

        Returns:
            ResolvedIdentity; is_new is False whenever a suggestion was confirmed
        """
        if selected is not None:
            return ResolvedIdentity(uhid=selected.id, is_new=False)

        for attempt in range(1, self.config.max_attempts + 1):
            candidate = self.generate()
            if self.registry is None or not await self.registry.patient_exists(candidate):
                logger.info(f"Allocated new UHID {candidate} (attempt {attempt})")
                return ResolvedIdentity(uhid=candidate, is_new=True)
            logger.warning(f"UHID collision on {candidate}, regenerating")

        raise IdentityExhausted(f"No free UHID after {self.config.max_attempts} attempts")
