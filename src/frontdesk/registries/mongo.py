"""
MongoDB registries

Each registry owns its own motor client so the two stores stay independent.
A patients/{uhid} node is the document whose _id is the uhid; nested visit
collections live on that document as {modality: {entryKey: entry}}.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Any, Optional, AsyncIterator, List

from pymongo.errors import PyMongoError

from .base_registry import (
    PrimaryRegistry,
    MirrorRegistry,
    PatientChange,
    LEDGER_MODALITIES,
    new_push_key,
)
from ..core.config import PrimaryRegistryConfig, MirrorRegistryConfig
from ..core.database import DatabaseManager, BaseRepository
from ..core.errors import TransportFailure

logger = logging.getLogger(__name__)

# Listing patients for the directory never needs the visit collections
_IDENTITY_PROJECTION = {modality: 0 for modality in LEDGER_MODALITIES}


def _strip_id(document: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if document is None:
        return None
    document = dict(document)
    document.pop("_id", None)
    return document


class _MongoPatients:
    """patients/ node operations shared by both Mongo registries"""

    db_manager: DatabaseManager
    patients: BaseRepository

    async def get_patient(self, uhid: str) -> Optional[Dict[str, Any]]:
        return _strip_id(await self.patients.find_one({"_id": uhid}))

    async def list_patients(self) -> Dict[str, Dict[str, Any]]:
        documents = await self.patients.find_many({}, _IDENTITY_PROJECTION)
        return {doc["_id"]: _strip_id(doc) for doc in documents}

    async def set_patient(self, uhid: str, document: Dict[str, Any]) -> None:
        await self.patients.replace_one(uhid, document)

    async def watch_patients(self) -> AsyncIterator[PatientChange]:
        """Follow the patients collection through a change stream (replica set required)"""
        try:
            async with self.patients.collection.watch(full_document="updateLookup") as stream:
                async for change in stream:
                    key = change["documentKey"]["_id"]
                    if change["operationType"] == "delete":
                        yield key, None
                    else:
                        yield key, _strip_id(change.get("fullDocument"))
        except PyMongoError as e:
            logger.error(f"Change stream on {self.patients.collection_name} failed: {e}")
            raise TransportFailure(str(e)) from e

    async def health_check(self) -> Dict[str, Any]:
        return await self.db_manager.health_check()

    async def cleanup(self) -> None:
        await self.db_manager.cleanup()
        self._initialized = False


class MongoPrimaryRegistry(_MongoPatients, PrimaryRegistry):
    """Primary registry backed by MongoDB"""

    def __init__(self, config: PrimaryRegistryConfig):
        super().__init__()
        self.config = config
        self.db_manager = DatabaseManager(config, "primary")

    async def initialize(self) -> None:
        if self._initialized:
            return
        await self.db_manager.initialize()
        await self.db_manager.create_indexes({
            self.config.patients_collection: [[("name", 1)], [("phone", 1)]],
            self.config.intents_collection: [[("status", 1)]],
        })

        self.patients = BaseRepository(self.db_manager, self.config.patients_collection)
        self.doctors = BaseRepository(self.db_manager, self.config.doctors_collection)
        self.oncall = BaseRepository(self.db_manager, self.config.oncall_collection)
        self.intents = BaseRepository(self.db_manager, self.config.intents_collection)

        self._initialized = True
        logger.info("Primary registry initialized successfully")

    async def patient_exists(self, uhid: str) -> bool:
        return await self.patients.count_documents({"_id": uhid}) > 0

    async def update_patient(self, uhid: str, fields: Dict[str, Any], upsert: bool = False) -> bool:
        return await self.patients.update_one({"_id": uhid}, {"$set": fields}, upsert=upsert)

    async def push_entry(self, uhid: str, modality: str, entry: Dict[str, Any]) -> str:
        key = new_push_key()
        await self.patients.update_one(
            {"_id": uhid},
            {"$set": {f"{modality}.{key}": {**entry, "id": key}}},
            upsert=True,
        )
        return key

    async def get_entries(self, uhid: str, modality: str) -> Dict[str, Dict[str, Any]]:
        document = await self.patients.find_one({"_id": uhid}, {modality: 1})
        if not document:
            return {}
        return document.get(modality, {})

    async def push_oncall(self, entry: Dict[str, Any]) -> str:
        key = new_push_key()
        await self.oncall.replace_one(key, {**entry, "id": key})
        return key

    async def list_doctors(self) -> Dict[str, Dict[str, Any]]:
        documents = await self.doctors.find_many({})
        return {str(doc["_id"]): _strip_id(doc) for doc in documents}

    async def put_intent(self, intent_id: str, intent: Dict[str, Any]) -> None:
        await self.intents.replace_one(intent_id, {**intent, "intentId": intent_id})

    async def set_intent_status(self, intent_id: str, status: str, error: Optional[str] = None) -> None:
        await self.intents.update_one(
            {"_id": intent_id},
            {"$set": {
                "status": status,
                "error": error,
                "updatedAt": datetime.now(timezone.utc).isoformat(),
            }},
        )

    async def list_intents(self, status: str) -> List[Dict[str, Any]]:
        documents = await self.intents.find_many({"status": status})
        return [_strip_id(doc) for doc in documents]


class MongoMirrorRegistry(_MongoPatients, MirrorRegistry):
    """Mirror registry backed by a separate MongoDB deployment"""

    def __init__(self, config: MirrorRegistryConfig):
        super().__init__()
        self.config = config
        self.db_manager = DatabaseManager(config, "mirror")

    async def initialize(self) -> None:
        if self._initialized:
            return
        await self.db_manager.initialize()
        self.patients = BaseRepository(self.db_manager, self.config.patients_collection)
        self._initialized = True
        logger.info("Mirror registry initialized successfully")
