"""MongoDB connection management and data access for TrustReport.

The collaborator that administers exams writes attempts, personality results,
profiles and configuration into the shared database; this service reads those
records and owns only the ``ai_analysis_cache`` collection plus a few
denormalized fields on attempts and results.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple, Union

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorClientSession,
    AsyncIOMotorCollection,
    AsyncIOMotorDatabase,
)
from pymongo import IndexModel, errors

from trustreport.core.config import get_settings
from trustreport.utils.exceptions import DatabaseError
from trustreport.utils.logger import get_logger

settings = get_settings()
logger = get_logger(__name__)


def to_object_id(value: Union[str, ObjectId, None]) -> Union[str, ObjectId, None]:
    """Convert a 24-hex identifier to ObjectId, leaving opaque ids untouched.

    Records written by the exam collaborator may use UUID strings, so an
    identifier that is not a valid ObjectId is kept as-is.
    """
    if value is None or isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return value


def id_filter(value: Union[str, ObjectId]) -> Dict[str, Any]:
    """Build an ``_id`` filter that matches both ObjectId and string forms."""
    converted = to_object_id(value)
    if isinstance(converted, ObjectId):
        return {"_id": {"$in": [converted, str(value)]}}
    return {"_id": converted}


class MongoDB:
    """MongoDB connection manager."""

    _client: Optional[AsyncIOMotorClient] = None
    _database: Optional[AsyncIOMotorDatabase] = None
    _initialized: bool = False
    _lock: asyncio.Lock = asyncio.Lock()

    @classmethod
    async def connect(
        cls,
        url: Optional[str] = None,
        db_name: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        """Connect to MongoDB with connection pooling.

        Args:
            url: MongoDB connection URL
            db_name: Database name
            **kwargs: Additional connection parameters
        """
        async with cls._lock:
            if cls._initialized:
                logger.warning("MongoDB already connected")
                return

            try:
                connection_url = url or settings.MONGODB_URL
                database_name = db_name or settings.MONGODB_DB_NAME

                connection_params = {
                    "maxPoolSize": kwargs.get("max_pool_size", settings.MONGODB_MAX_POOL_SIZE),
                    "minPoolSize": kwargs.get("min_pool_size", settings.MONGODB_MIN_POOL_SIZE),
                    "connectTimeoutMS": kwargs.get("connect_timeout_ms", settings.MONGODB_CONNECT_TIMEOUT_MS),
                    "serverSelectionTimeoutMS": kwargs.get("server_selection_timeout_ms", 5000),
                    "retryWrites": kwargs.get("retry_writes", True),
                    "retryReads": kwargs.get("retry_reads", True),
                    "tz_aware": True,
                }

                cls._client = AsyncIOMotorClient(connection_url, **connection_params)
                cls._database = cls._client[database_name]

                await cls._client.server_info()

                cls._initialized = True
                logger.info(
                    "MongoDB connected successfully",
                    extra={
                        "database": database_name,
                        "pool_size": connection_params["maxPoolSize"],
                    }
                )

            except Exception as e:
                cls._client = None
                cls._database = None
                cls._initialized = False
                logger.error(f"MongoDB connection failed: {str(e)}", exc_info=True)
                raise

    @classmethod
    async def disconnect(cls) -> None:
        """Disconnect from MongoDB."""
        async with cls._lock:
            if cls._client is not None:
                cls._client.close()
                cls._client = None
                cls._database = None
                cls._initialized = False
                logger.info("MongoDB disconnected successfully")

    @classmethod
    async def ping(cls) -> bool:
        """Check if MongoDB connection is alive."""
        if not cls._initialized or cls._client is None:
            return False

        try:
            await cls._client.admin.command("ping")
            return True
        except Exception as e:
            logger.error(f"MongoDB ping failed: {str(e)}")
            return False

    @classmethod
    def get_client(cls) -> Optional[AsyncIOMotorClient]:
        return cls._client

    @classmethod
    def get_collection(cls, name: str) -> AsyncIOMotorCollection:
        """Get a collection by name.

        Args:
            name: Collection name

        Returns:
            Collection instance

        Raises:
            DatabaseError: If MongoDB is not connected
        """
        if cls._database is None:
            raise DatabaseError("MongoDB not connected", collection=name)
        return cls._database[name]

    @classmethod
    async def create_indexes(cls, collection_name: str, indexes: List[IndexModel]) -> List[str]:
        """Create multiple indexes on a collection.

        Args:
            collection_name: Name of the collection
            indexes: List of IndexModel instances

        Returns:
            List of created index names
        """
        collection = cls.get_collection(collection_name)

        try:
            result = await collection.create_indexes(indexes)
            logger.info(
                f"Created {len(result)} indexes on {collection_name}",
                extra={"indexes": result}
            )
            return result
        except errors.OperationFailure as e:
            logger.error(
                f"Failed to create indexes on {collection_name}: {str(e)}",
                exc_info=True
            )
            return []


class MongoDBOperations:
    """Data access facade used by the services.

    Every operation raises ``DatabaseError`` on driver failures and accepts an
    optional ``session`` so that it can take part in a transaction opened with
    ``transaction()``.
    """

    @staticmethod
    async def find_one(
        collection_name: str,
        filter_dict: Dict[str, Any],
        projection: Optional[Dict[str, int]] = None,
        sort: Optional[List[Tuple[str, int]]] = None,
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> Optional[Dict[str, Any]]:
        """Find a single document.

        Args:
            collection_name: Name of the collection
            filter_dict: Query filter
            projection: Fields to include/exclude
            sort: Sort specification; the first document in that order wins
            session: Optional transaction session

        Returns:
            Document or None
        """
        collection = MongoDB.get_collection(collection_name)

        try:
            return await collection.find_one(
                filter_dict,
                projection=projection,
                sort=sort,
                session=session,
            )
        except errors.PyMongoError as e:
            raise DatabaseError(
                f"find_one on {collection_name} failed: {str(e)}",
                operation="find_one",
                collection=collection_name,
                query=filter_dict,
                cause=e,
            )

    @staticmethod
    async def find(
        collection_name: str,
        filter_dict: Optional[Dict[str, Any]] = None,
        projection: Optional[Dict[str, int]] = None,
        sort: Optional[List[Tuple[str, int]]] = None,
        limit: int = 0,
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> List[Dict[str, Any]]:
        """Find multiple documents.

        Args:
            collection_name: Name of the collection
            filter_dict: Query filter
            projection: Fields to include/exclude
            sort: Sort specification
            limit: Maximum number of documents to return (0 = no limit)
            session: Optional transaction session

        Returns:
            List of documents
        """
        collection = MongoDB.get_collection(collection_name)

        try:
            cursor = collection.find(filter_dict or {}, projection=projection, session=session)
            if sort:
                cursor = cursor.sort(sort)
            if limit > 0:
                cursor = cursor.limit(limit)
            return await cursor.to_list(length=None)
        except errors.PyMongoError as e:
            raise DatabaseError(
                f"find on {collection_name} failed: {str(e)}",
                operation="find",
                collection=collection_name,
                query=filter_dict,
                cause=e,
            )

    @staticmethod
    async def insert_one(
        collection_name: str,
        document: Dict[str, Any],
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> str:
        """Insert a single document.

        Args:
            collection_name: Name of the collection
            document: Document to insert
            session: Optional transaction session

        Returns:
            Inserted document ID
        """
        collection = MongoDB.get_collection(collection_name)

        try:
            if "created_at" not in document:
                document["created_at"] = datetime.now(timezone.utc)

            result = await collection.insert_one(document, session=session)
            return str(result.inserted_id)
        except errors.PyMongoError as e:
            raise DatabaseError(
                f"insert_one on {collection_name} failed: {str(e)}",
                operation="insert",
                collection=collection_name,
                cause=e,
            )

    @staticmethod
    async def update_one(
        collection_name: str,
        filter_dict: Dict[str, Any],
        update_dict: Dict[str, Any],
        upsert: bool = False,
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> bool:
        """Update a single document.

        Args:
            collection_name: Name of the collection
            filter_dict: Query filter
            update_dict: Update operations
            upsert: Whether to insert if not found
            session: Optional transaction session

        Returns:
            bool: True if a document matched
        """
        collection = MongoDB.get_collection(collection_name)

        try:
            update_dict.setdefault("$set", {})["updated_at"] = datetime.now(timezone.utc)
            result = await collection.update_one(
                filter_dict,
                update_dict,
                upsert=upsert,
                session=session,
            )
            return result.matched_count > 0
        except errors.PyMongoError as e:
            raise DatabaseError(
                f"update_one on {collection_name} failed: {str(e)}",
                operation="update",
                collection=collection_name,
                query=filter_dict,
                cause=e,
            )

    @staticmethod
    async def update_many(
        collection_name: str,
        filter_dict: Dict[str, Any],
        update_dict: Dict[str, Any],
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> int:
        """Update multiple documents.

        Returns:
            Number of modified documents
        """
        collection = MongoDB.get_collection(collection_name)

        try:
            update_dict.setdefault("$set", {})["updated_at"] = datetime.now(timezone.utc)
            result = await collection.update_many(filter_dict, update_dict, session=session)
            return result.modified_count
        except errors.PyMongoError as e:
            raise DatabaseError(
                f"update_many on {collection_name} failed: {str(e)}",
                operation="update",
                collection=collection_name,
                query=filter_dict,
                cause=e,
            )

    @staticmethod
    async def delete_many(
        collection_name: str,
        filter_dict: Dict[str, Any],
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> int:
        collection = MongoDB.get_collection(collection_name)

        try:
            result = await collection.delete_many(filter_dict, session=session)
            return result.deleted_count
        except errors.PyMongoError as e:
            raise DatabaseError(
                f"delete_many on {collection_name} failed: {str(e)}",
                operation="delete",
                collection=collection_name,
                query=filter_dict,
                cause=e,
            )

    @staticmethod
    async def aggregate(
        collection_name: str,
        pipeline: List[Dict[str, Any]],
    ) -> List[Dict[str, Any]]:
        """Execute an aggregation pipeline.

        Args:
            collection_name: Name of the collection
            pipeline: Aggregation pipeline stages

        Returns:
            List of aggregation results
        """
        collection = MongoDB.get_collection(collection_name)

        try:
            cursor = collection.aggregate(pipeline)
            return await cursor.to_list(length=None)
        except errors.PyMongoError as e:
            raise DatabaseError(
                f"aggregate on {collection_name} failed: {str(e)}",
                operation="aggregate",
                collection=collection_name,
                cause=e,
            )

    @staticmethod
    @asynccontextmanager
    async def transaction() -> AsyncIterator[Optional[AsyncIOMotorClientSession]]:
        """Open a multi-document transaction.

        Yields the session to pass to each operation. The transaction commits
        when the block exits normally and aborts on exception. When
        ``MONGODB_USE_TRANSACTIONS`` is off (standalone servers) ``None`` is
        yielded and the operations run without a session.
        """
        client = MongoDB.get_client()
        if client is None:
            raise DatabaseError("MongoDB not connected", operation="transaction")

        if not settings.MONGODB_USE_TRANSACTIONS:
            yield None
            return

        async with await client.start_session() as session:
            async with session.start_transaction():
                yield session


__all__ = [
    "MongoDB",
    "MongoDBOperations",
    "to_object_id",
    "id_filter",
]
