"""
Patient directory service - merged, searchable view over both registries
"""

from typing import Optional, List, Dict, Any
import asyncio
import logging

from fuzzywuzzy import fuzz
from pydantic import ValidationError as PydanticValidationError

from ..models.patient import (
    RegistrySource,
    PrimaryRecord,
    MirrorRecord,
    PrimaryEntry,
    MirrorEntry,
    DirectoryEntry,
)
from ....core.config import DirectoryConfig, get_directory_config
from ....core.errors import IntakeError
from ....registries import PrimaryRegistry, MirrorRegistry, BaseRegistry


logger = logging.getLogger(__name__)

SEARCH_FIELDS = ("name", "phone")


class PatientDirectory:
    """
    Holds one live projection per registry and answers suggestion lookups.

    Name search is case-insensitive substring containment; phone search is
    substring containment against the stored digit string. Results are the
    union of both projections, each entry tagged with its source. The same
    person present in both registries appears twice.
    """

    def __init__(
        self,
        primary: PrimaryRegistry,
        mirror: MirrorRegistry,
        config: Optional[DirectoryConfig] = None,
    ):
        self.primary = primary
        self.mirror = mirror
        self.config = config or get_directory_config()
        self._primary_entries: Dict[str, PrimaryEntry] = {}
        self._mirror_entries: Dict[str, MirrorEntry] = {}
        self._watch_tasks: List[asyncio.Task] = []
        self._watch_state: Dict[str, str] = {}

    async def refresh(self) -> None:
        """Reload both projections from their registries"""
        primary_docs = await self.primary.list_patients()
        mirror_docs = await self.mirror.list_patients()

        self._primary_entries = {}
        for key, document in primary_docs.items():
            self.apply_change(RegistrySource.PRIMARY, key, document)

        self._mirror_entries = {}
        for key, document in mirror_docs.items():
            self.apply_change(RegistrySource.MIRROR, key, document)

        logger.info(
            f"Patient directory loaded {len(self._primary_entries)} primary "
            f"and {len(self._mirror_entries)} mirror identities"
        )

    def apply_change(self, source: RegistrySource, key: str, document: Optional[Dict[str, Any]]) -> None:
        """Apply one patients/{key} change to the matching projection"""
        target = self._primary_entries if source is RegistrySource.PRIMARY else self._mirror_entries
        if document is None:
            target.pop(key, None)
            return

        try:
            if source is RegistrySource.PRIMARY:
                record = PrimaryRecord.model_validate({**document, "uhid": document.get("uhid") or key})
                target[key] = PrimaryEntry(record)
            else:
                record = MirrorRecord.model_validate({**document, "patientId": document.get("patientId") or key})
                target[key] = MirrorEntry(record)
        except PydanticValidationError as e:
            logger.warning(f"Skipping malformed {source.value} patient {key}: {e}")

    def entries(self, source: Optional[RegistrySource] = None) -> List[DirectoryEntry]:
        primary = list(self._primary_entries.values())
        mirror = list(self._mirror_entries.values())
        if source is RegistrySource.PRIMARY:
            return primary
        if source is RegistrySource.MIRROR:
            return mirror
        return primary + mirror

    def find(self, uhid: str) -> List[DirectoryEntry]:
        """Every entry carrying this UHID, primary first"""
        return [entry for entry in self.entries() if entry.id == uhid]

    async def lookup(self, uhid: str) -> List[DirectoryEntry]:
        """
        Entries for a UHID, reading through to the registries on a miss

        A projection can trail a registry write by one change event, so a
        miss is checked against primary then mirror before it is reported.
        """
        matches = self.find(uhid)
        if matches:
            return matches

        for source, registry in ((RegistrySource.PRIMARY, self.primary), (RegistrySource.MIRROR, self.mirror)):
            document = await registry.get_patient(uhid)
            if document is not None:
                self.apply_change(source, uhid, document)
        return self.find(uhid)

    def confirmed_entry(
        self,
        uhid: str,
        fragment: Optional[str] = None,
        field: str = "name",
        source: Optional[RegistrySource] = None,
    ) -> Optional[DirectoryEntry]:
        """
        The entry the operator confirmed for this UHID

        With both registries holding the UHID, the entry whose `field` equals
        the fragment wins, so a confirmed mirror name is recognised even when
        the primary spelling differs.
        """
        matches = [entry for entry in self.find(uhid) if source is None or entry.kind is source]
        if not matches:
            return None
        if fragment is not None:
            value = fragment.strip() if field == "phone" else fragment
            for entry in matches:
                if getattr(entry, field) == value:
                    return entry
        return matches[0]

    def search(
        self,
        fragment: Optional[str],
        field: str = "name",
        confirmed: Optional[DirectoryEntry] = None,
    ) -> List[DirectoryEntry]:
        """
        Suggest identities matching a partial name or phone

        Args:
            fragment: Text typed so far
            field: 'name' or 'phone'
            confirmed: Entry already chosen; its own value suppresses suggestions

        Returns:
            Matching entries from both registries, closest matches first
        """
        if field not in SEARCH_FIELDS:
            raise ValueError(f"Unknown search field '{field}'. Available fields: {', '.join(SEARCH_FIELDS)}")

        if field == "phone":
            fragment = (fragment or "").strip()
        else:
            fragment = fragment or ""

        if len(fragment) < self.config.min_fragment_length:
            return []

        if confirmed is not None and fragment == getattr(confirmed, field):
            return []

        if field == "name":
            needle = fragment.lower()
            matches = [e for e in self.entries() if needle in e.name.lower()]
            # sorted() is stable, so equal scores keep primary-before-mirror order
            matches = sorted(matches, key=lambda e: fuzz.ratio(needle, e.name.lower()), reverse=True)
        else:
            matches = [e for e in self.entries() if e.phone and fragment in e.phone]

        if self.config.result_limit:
            matches = matches[:self.config.result_limit]
        return matches

    async def start_live(self) -> None:
        """Follow both registries so the projections stay current"""
        if self._watch_tasks:
            return
        self._watch_tasks = [
            asyncio.create_task(self._follow(RegistrySource.PRIMARY, self.primary)),
            asyncio.create_task(self._follow(RegistrySource.MIRROR, self.mirror)),
        ]
        logger.info("Patient directory following live registry changes")

    async def stop_live(self) -> None:
        for task in self._watch_tasks:
            task.cancel()
        await asyncio.gather(*self._watch_tasks, return_exceptions=True)
        self._watch_tasks = []
        self._watch_state = {}

    def live_status(self) -> Dict[str, Any]:
        """Change-stream state per registry, for the health endpoint"""
        if not self._watch_tasks:
            return {"status": "disabled"}
        following = all(state == "following" for state in self._watch_state.values())
        return {
            "status": "healthy" if following and len(self._watch_state) == 2 else "degraded",
            **self._watch_state,
        }

    async def _follow(self, source: RegistrySource, registry: BaseRegistry) -> None:
        """Apply one registry's changes, reopening the stream after a failure"""
        stale = False
        while True:
            try:
                if stale:
                    await self._reload(source, registry)
                    stale = False
                changes = registry.watch_patients()
                self._watch_state[source.value] = "following"
                async for key, document in changes:
                    self.apply_change(source, key, document)
                raise IntakeError(f"{source.value} change stream closed")
            except IntakeError as e:
                stale = True
                self._watch_state[source.value] = f"restarting: {e}"
                logger.error(
                    f"{source.value} change stream failed, retrying in "
                    f"{self.config.watch_retry_seconds}s: {e}"
                )
                await asyncio.sleep(self.config.watch_retry_seconds)

    async def _reload(self, source: RegistrySource, registry: BaseRegistry) -> None:
        # changes made while the stream was down never reach it
        documents = await registry.list_patients()
        target = self._primary_entries if source is RegistrySource.PRIMARY else self._mirror_entries
        target.clear()
        for key, document in documents.items():
            self.apply_change(source, key, document)
