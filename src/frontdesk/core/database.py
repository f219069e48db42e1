"""
Database utility abstractions for the MongoDB-backed registries
"""

import logging
from decimal import Decimal
from typing import Optional, Dict, Any, List, Union

from bson.codec_options import CodecOptions, TypeCodec, TypeRegistry
from bson.decimal128 import Decimal128
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase, AsyncIOMotorCollection
from pymongo.errors import PyMongoError

from .config import PrimaryRegistryConfig, MirrorRegistryConfig
from .errors import TransportFailure

logger = logging.getLogger(__name__)

RegistryConfig = Union[PrimaryRegistryConfig, MirrorRegistryConfig]


class DecimalCodec(TypeCodec):
    """Stores money amounts as Decimal128 so splits stay exact"""
    python_type = Decimal
    bson_type = Decimal128

    def transform_python(self, value):
        return Decimal128(value)

    def transform_bson(self, value):
        return value.to_decimal()


CODEC_OPTIONS = CodecOptions(type_registry=TypeRegistry([DecimalCodec()]))


class DatabaseManager:
    """
    Connection manager for one registry.
    The primary and mirror registries each get their own manager and client,
    they never share a connection.
    """

    def __init__(self, config: RegistryConfig, label: str):
        self.config = config
        self.label = label
        self._client: Optional[AsyncIOMotorClient] = None
        self._database: Optional[AsyncIOMotorDatabase] = None
        self._initialized = False

    async def initialize(self) -> None:
        """Initialize database connection"""
        if self._initialized:
            return

        logger.info(f"Initializing {self.label} registry connection to database {self.config.name}")

        try:
            self._client = AsyncIOMotorClient(
                self.config.uri,
                maxPoolSize=self.config.max_pool_size,
                minPoolSize=self.config.min_pool_size,
                serverSelectionTimeoutMS=self.config.server_selection_timeout_ms
            )

            # Test connection
            await self._client.admin.command('ping')
            self._database = self._client.get_database(self.config.name, codec_options=CODEC_OPTIONS)
            self._initialized = True
            logger.info(f"{self.label} registry connection established successfully")

        except PyMongoError as e:
            logger.error(f"Failed to initialize {self.label} registry: {e}")
            raise TransportFailure(f"{self.label} registry unreachable: {e}") from e

    async def create_indexes(self, specs: Dict[str, List[List[tuple]]]) -> None:
        """Create indexes given as {collection: [keys, ...]}"""
        try:
            for collection_name, index_keys in specs.items():
                for keys in index_keys:
                    await self.database[collection_name].create_index(keys)
            logger.info(f"{self.label} registry indexes created successfully")
        except PyMongoError as e:
            logger.error(f"Failed to create {self.label} registry indexes: {e}")
            raise TransportFailure(str(e)) from e

    async def cleanup(self) -> None:
        """Cleanup database connections"""
        if self._client:
            self._client.close()
            self._initialized = False
            logger.info(f"{self.label} registry connections closed")

    @property
    def database(self) -> AsyncIOMotorDatabase:
        """Get the database instance"""
        if not self._initialized:
            raise RuntimeError("Database manager not initialized. Call initialize() first.")
        return self._database

    def get_collection(self, name: str) -> AsyncIOMotorCollection:
        """Get a collection by name"""
        return self.database[name]

    async def health_check(self) -> Dict[str, Any]:
        """Perform database health check"""
        try:
            if not self._initialized:
                return {"status": "error", "message": "Database not initialized"}

            await self._client.admin.command('ping')
            stats = await self._database.command("dbStats")

            return {
                "status": "healthy",
                "database": self.config.name,
                "collections": stats.get("collections", 0),
                "objects": stats.get("objects", 0),
            }

        except PyMongoError as e:
            logger.error(f"{self.label} registry health check failed: {e}")
            return {
                "status": "unhealthy",
                "error": str(e)
            }


class BaseRepository:
    """
    Base repository class providing common collection operations.
    Driver errors are re-raised as TransportFailure.
    """

    def __init__(self, db_manager: DatabaseManager, collection_name: str):
        self.db_manager = db_manager
        self.collection_name = collection_name

    @property
    def collection(self) -> AsyncIOMotorCollection:
        """Get the collection for this repository"""
        return self.db_manager.get_collection(self.collection_name)

    async def find_one(
        self,
        filter_dict: Dict[str, Any],
        projection: Optional[Dict[str, Any]] = None
    ) -> Optional[Dict[str, Any]]:
        """Find a single document"""
        try:
            return await self.collection.find_one(filter_dict, projection)
        except PyMongoError as e:
            logger.error(f"Error in find_one for {self.collection_name}: {e}")
            raise TransportFailure(str(e)) from e

    async def find_many(
        self,
        filter_dict: Dict[str, Any],
        projection: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """Find multiple documents"""
        try:
            cursor = self.collection.find(filter_dict, projection)
            if limit:
                cursor = cursor.limit(limit)
            return await cursor.to_list(length=limit)
        except PyMongoError as e:
            logger.error(f"Error in find_many for {self.collection_name}: {e}")
            raise TransportFailure(str(e)) from e

    async def replace_one(self, key: str, document: Dict[str, Any]) -> None:
        """Overwrite the node stored under key"""
        try:
            await self.collection.replace_one({"_id": key}, {**document, "_id": key}, upsert=True)
        except PyMongoError as e:
            logger.error(f"Error in replace_one for {self.collection_name}: {e}")
            raise TransportFailure(str(e)) from e

    async def update_one(
        self,
        filter_dict: Dict[str, Any],
        update_dict: Dict[str, Any],
        upsert: bool = False
    ) -> bool:
        """Update a single document"""
        try:
            result = await self.collection.update_one(filter_dict, update_dict, upsert=upsert)
            return result.matched_count > 0 or (upsert and result.upserted_id is not None)
        except PyMongoError as e:
            logger.error(f"Error in update_one for {self.collection_name}: {e}")
            raise TransportFailure(str(e)) from e

    async def count_documents(self, filter_dict: Dict[str, Any] = None) -> int:
        """Count documents matching the filter"""
        try:
            return await self.collection.count_documents(filter_dict or {})
        except PyMongoError as e:
            logger.error(f"Error in count_documents for {self.collection_name}: {e}")
            raise TransportFailure(str(e)) from e
