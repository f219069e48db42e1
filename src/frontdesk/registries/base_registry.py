"""
Base Registry Interfaces

Defines the interfaces the two independently administered patient stores
must implement. The intake core only ever talks to these, so any backend
(MongoDB, in-memory) can be injected.

Both stores are addressed by path the same way a realtime key-value store is:
    primary:  patients/{uhid}, patients/{uhid}/{modality}/{entryKey},
              doctors/{doctorId}, oncall/{entryKey}
    mirror:   patients/{uhid}
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional, AsyncIterator, Tuple, List
import logging

from bson import ObjectId

logger = logging.getLogger(__name__)

# (key, document) pairs; document is None when the node was removed
PatientChange = Tuple[str, Optional[Dict[str, Any]]]

LEDGER_MODALITIES = ("opd", "casualty", "pathology", "ipd")


def new_push_key() -> str:
    """Store-assigned, time-ordered unique key for appends"""
    return str(ObjectId())


class BaseRegistry(ABC):
    """Lifecycle shared by both registries"""

    def __init__(self):
        self.registry_name = self.__class__.__name__
        self._initialized = False

    @abstractmethod
    async def initialize(self) -> None:
        """Open connections and prepare collections"""

    async def cleanup(self) -> None:
        """Release connections"""
        self._initialized = False

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """Return a status dictionary"""

    @abstractmethod
    async def get_patient(self, uhid: str) -> Optional[Dict[str, Any]]:
        """Read patients/{uhid}"""

    @abstractmethod
    async def list_patients(self) -> Dict[str, Dict[str, Any]]:
        """Read every node under patients/ keyed by uhid"""

    @abstractmethod
    async def set_patient(self, uhid: str, document: Dict[str, Any]) -> None:
        """Overwrite patients/{uhid}"""

    @abstractmethod
    def watch_patients(self) -> AsyncIterator[PatientChange]:
        """Yield changes under patients/ as they happen"""


class PrimaryRegistry(BaseRegistry):
    """Authoritative store holding full patient records, visits and doctors"""

    async def patient_exists(self, uhid: str) -> bool:
        return await self.get_patient(uhid) is not None

    @abstractmethod
    async def update_patient(self, uhid: str, fields: Dict[str, Any], upsert: bool = False) -> bool:
        """Merge fields into patients/{uhid}; returns False when absent and not upserting"""

    @abstractmethod
    async def push_entry(self, uhid: str, modality: str, entry: Dict[str, Any]) -> str:
        """Append an entry under patients/{uhid}/{modality}; returns the new key"""

    @abstractmethod
    async def get_entries(self, uhid: str, modality: str) -> Dict[str, Dict[str, Any]]:
        """Read patients/{uhid}/{modality}"""

    @abstractmethod
    async def push_oncall(self, entry: Dict[str, Any]) -> str:
        """Append an entry under oncall/; returns the new key"""

    @abstractmethod
    async def list_doctors(self) -> Dict[str, Dict[str, Any]]:
        """Read every node under doctors/ keyed by doctor id"""

    @abstractmethod
    async def put_intent(self, intent_id: str, intent: Dict[str, Any]) -> None:
        """Write a registration intent"""

    @abstractmethod
    async def set_intent_status(self, intent_id: str, status: str, error: Optional[str] = None) -> None:
        """Update the status of a registration intent"""

    @abstractmethod
    async def list_intents(self, status: str) -> List[Dict[str, Any]]:
        """Read registration intents with the given status"""


class MirrorRegistry(BaseRegistry):
    """Independently administered store holding reduced patient records"""
