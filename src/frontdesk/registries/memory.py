"""
In-memory registries

Dict-backed stand-ins for the two stores, used by the test-suite and by
REGISTRY_BACKEND=memory development runs. Operations listed in `fail_on`
raise TransportFailure so partial-write paths can be exercised.
"""

import asyncio
import copy
import logging
from typing import Dict, Any, Optional, AsyncIterator, List, Set

from .base_registry import (
    BaseRegistry,
    PrimaryRegistry,
    MirrorRegistry,
    PatientChange,
    new_push_key,
)
from ..core.errors import TransportFailure

logger = logging.getLogger(__name__)


class _MemoryPatients(BaseRegistry):
    """patients/ node shared by both in-memory registries"""

    def __init__(self, patients: Optional[Dict[str, Dict[str, Any]]] = None):
        super().__init__()
        self.patients: Dict[str, Dict[str, Any]] = copy.deepcopy(patients or {})
        self.fail_on: Set[str] = set()
        self._watchers: List[asyncio.Queue] = []

    def _check(self, operation: str) -> None:
        if operation in self.fail_on:
            raise TransportFailure(f"{self.registry_name}.{operation} unavailable")

    def _publish(self, key: str) -> None:
        document = copy.deepcopy(self.patients.get(key))
        for queue in self._watchers:
            queue.put_nowait((key, document))

    async def initialize(self) -> None:
        self._initialized = True

    async def health_check(self) -> Dict[str, Any]:
        return {
            "status": "healthy",
            "registry": self.registry_name,
            "patients": len(self.patients),
        }

    async def get_patient(self, uhid: str) -> Optional[Dict[str, Any]]:
        self._check("get_patient")
        document = self.patients.get(uhid)
        return copy.deepcopy(document) if document is not None else None

    async def list_patients(self) -> Dict[str, Dict[str, Any]]:
        self._check("list_patients")
        return copy.deepcopy(self.patients)

    async def set_patient(self, uhid: str, document: Dict[str, Any]) -> None:
        self._check("set_patient")
        self.patients[uhid] = copy.deepcopy(document)
        self._publish(uhid)

    async def watch_patients(self) -> AsyncIterator[PatientChange]:
        self._check("watch_patients")
        queue: asyncio.Queue = asyncio.Queue()
        self._watchers.append(queue)
        try:
            while True:
                yield await queue.get()
        finally:
            self._watchers.remove(queue)


class MemoryPrimaryRegistry(_MemoryPatients, PrimaryRegistry):
    """In-memory primary registry"""

    def __init__(
        self,
        patients: Optional[Dict[str, Dict[str, Any]]] = None,
        doctors: Optional[Dict[str, Dict[str, Any]]] = None,
    ):
        super().__init__(patients)
        self.doctors: Dict[str, Dict[str, Any]] = copy.deepcopy(doctors or {})
        self.oncall: Dict[str, Dict[str, Any]] = {}
        self.intents: Dict[str, Dict[str, Any]] = {}

    async def update_patient(self, uhid: str, fields: Dict[str, Any], upsert: bool = False) -> bool:
        self._check("update_patient")
        if uhid not in self.patients:
            if not upsert:
                return False
            self.patients[uhid] = {}
        self.patients[uhid].update(copy.deepcopy(fields))
        self._publish(uhid)
        return True

    async def push_entry(self, uhid: str, modality: str, entry: Dict[str, Any]) -> str:
        self._check("push_entry")
        key = new_push_key()
        node = self.patients.setdefault(uhid, {})
        node.setdefault(modality, {})[key] = copy.deepcopy({**entry, "id": key})
        self._publish(uhid)
        return key

    async def get_entries(self, uhid: str, modality: str) -> Dict[str, Dict[str, Any]]:
        self._check("get_entries")
        return copy.deepcopy(self.patients.get(uhid, {}).get(modality, {}))

    async def push_oncall(self, entry: Dict[str, Any]) -> str:
        self._check("push_oncall")
        key = new_push_key()
        self.oncall[key] = copy.deepcopy({**entry, "id": key})
        return key

    async def list_doctors(self) -> Dict[str, Dict[str, Any]]:
        self._check("list_doctors")
        return copy.deepcopy(self.doctors)

    async def put_intent(self, intent_id: str, intent: Dict[str, Any]) -> None:
        self._check("put_intent")
        self.intents[intent_id] = copy.deepcopy({**intent, "intentId": intent_id})

    async def set_intent_status(self, intent_id: str, status: str, error: Optional[str] = None) -> None:
        self._check("set_intent_status")
        intent = self.intents[intent_id]
        intent["status"] = status
        intent["error"] = error

    async def list_intents(self, status: str) -> List[Dict[str, Any]]:
        self._check("list_intents")
        return [copy.deepcopy(i) for i in self.intents.values() if i.get("status") == status]


class MemoryMirrorRegistry(_MemoryPatients, MirrorRegistry):
    """In-memory mirror registry"""
