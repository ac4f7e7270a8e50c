"""Persistent cache of AI-generated report narratives.

Entries live in the ``ai_analysis_cache`` MongoDB collection and are keyed by
user, scope (exam or psychometric test), analysis type and a fingerprint of
the inputs the narrative was written from. At most one entry per
``(user_id, scope_id, analysis_type)`` is active: ``store`` deactivates the
previous entry and inserts the new one inside a single transaction, and a
partial unique index rejects a concurrent second insert.
"""

import hashlib
import json
from typing import Any, Dict, Optional

from pymongo import ASCENDING, DESCENDING, IndexModel
from pymongo.errors import PyMongoError

from trustreport.core.config import get_settings
from trustreport.database.mongodb import MongoDBOperations
from trustreport.models.ai_analysis_cache import AIAnalysisCacheEntry, AnalysisResult
from trustreport.utils.constants import AnalysisType, Collections
from trustreport.utils.datetime_utils import hours_ago, hours_from_now, utc_now
from trustreport.utils.exceptions import DatabaseError
from trustreport.utils.logger import get_cache_logger

settings = get_settings()
logger = get_cache_logger()


ANALYSIS_CACHE_INDEXES = [
    IndexModel(
        [("user_id", ASCENDING), ("scope_id", ASCENDING), ("analysis_type", ASCENDING)],
        name="uniq_active_analysis",
        unique=True,
        partialFilterExpression={"is_active": True},
    ),
    IndexModel(
        [
            ("user_id", ASCENDING),
            ("scope_id", ASCENDING),
            ("analysis_type", ASCENDING),
            ("input_data_hash", ASCENDING),
            ("generated_at", DESCENDING),
        ],
        name="analysis_lookup",
    ),
    IndexModel([("expires_at", ASCENDING)], name="analysis_expiry"),
]


def _scope_fields(analysis_type: str, scope_id: Optional[str]) -> Dict[str, Optional[str]]:
    """Store the scope under its type-specific field as well as ``scope_id``."""
    is_ocean = analysis_type == AnalysisType.OCEAN.value
    return {
        "scope_id": scope_id,
        "exam_id": None if is_ocean else scope_id,
        "psychometric_test_id": scope_id if is_ocean else None,
    }


class AnalysisCache:
    """Lookup and replacement of cached narratives."""

    def __init__(self, db=None):
        """Initialize analysis cache.

        Args:
            db: Data access facade (defaults to MongoDBOperations)
        """
        self.db = db or MongoDBOperations

    @staticmethod
    def build_input_data(**fields: Any) -> Dict[str, Any]:
        """Attach the current ``analysis_version`` to fingerprint inputs."""
        return {**fields, "analysis_version": settings.ANALYSIS_VERSION}

    @staticmethod
    def compute_fingerprint(input_data: Dict[str, Any]) -> str:
        """SHA-256 of the canonical JSON form of ``input_data``.

        Keys are sorted and separators fixed so that equal inputs always hash
        equally regardless of insertion order.

        Args:
            input_data: Semantically relevant analysis inputs

        Returns:
            str: Hex digest
        """
        canonical = json.dumps(
            input_data,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            default=str,
        )
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()

    async def lookup(
        self,
        user_id: str,
        scope_id: Optional[str],
        analysis_type: str,
        fingerprint: str,
        max_age_hours: Optional[int] = None,
    ) -> Optional[AIAnalysisCacheEntry]:
        """Find the newest reusable narrative.

        Args:
            user_id: Candidate the narrative describes
            scope_id: Exam id (reliability) or psychometric test id (OCEAN)
            analysis_type: ``reliability`` or ``ocean``
            fingerprint: Hash of the current inputs
            max_age_hours: Oldest acceptable ``generated_at``

        Returns:
            The active, unexpired entry, or None on miss or read failure
        """
        max_age = settings.AI_CACHE_MAX_AGE_HOURS if max_age_hours is None else max_age_hours
        now = utc_now()

        query = {
            "user_id": user_id,
            "scope_id": scope_id,
            "analysis_type": analysis_type,
            "input_data_hash": fingerprint,
            "is_active": True,
            "generated_at": {"$gte": hours_ago(max_age)},
            "expires_at": {"$gt": now},
        }

        try:
            document = await self.db.find_one(
                Collections.AI_ANALYSIS_CACHE,
                query,
                sort=[("generated_at", DESCENDING)],
            )
        except DatabaseError as e:
            logger.warning(
                f"Analysis cache lookup failed, treating as miss: {e.message}",
                extra={"user_id": user_id, "analysis_type": analysis_type}
            )
            return None

        if document is None:
            logger.debug(
                "Analysis cache miss",
                extra={"user_id": user_id, "scope_id": scope_id, "analysis_type": analysis_type}
            )
            return None

        logger.info(
            "Analysis cache hit",
            extra={"user_id": user_id, "scope_id": scope_id, "analysis_type": analysis_type}
        )
        return AIAnalysisCacheEntry.from_mongo(document)

    async def store(
        self,
        user_id: str,
        scope_id: Optional[str],
        analysis_type: str,
        input_data: Dict[str, Any],
        result: AnalysisResult,
        tokens_used: int = 0,
        model_used: Optional[str] = None,
        requested_by: Optional[str] = None,
        expires_hours: Optional[int] = None,
    ) -> Optional[str]:
        """Replace the active narrative for a user, scope and type.

        A failure here never fails the report that produced the narrative: it
        is logged and ``None`` is returned.

        Args:
            user_id: Candidate the narrative describes
            scope_id: Exam id or psychometric test id
            analysis_type: ``reliability`` or ``ocean``
            input_data: Fingerprint inputs, stored for auditing
            result: Narrative to store
            tokens_used: Completion tokens spent
            model_used: Model that wrote the narrative
            requested_by: User who triggered the generation
            expires_hours: Lifetime of the entry

        Returns:
            Inserted entry id, or None when the write failed
        """
        entry = AIAnalysisCacheEntry(
            user_id=user_id,
            analysis_type=analysis_type,
            input_data=input_data,
            input_data_hash=self.compute_fingerprint(input_data),
            ai_analysis_result=result,
            tokens_used=tokens_used,
            model_used=model_used,
            requested_by=requested_by,
            expires_at=hours_from_now(expires_hours or settings.AI_CACHE_EXPIRY_HOURS),
            is_active=True,
            **_scope_fields(analysis_type, scope_id),
        )
        document = entry.model_dump(exclude={"id", "created_at"})

        try:
            async with self.db.transaction() as session:
                await self.db.update_many(
                    Collections.AI_ANALYSIS_CACHE,
                    {
                        "user_id": user_id,
                        "scope_id": scope_id,
                        "analysis_type": analysis_type,
                        "is_active": True,
                    },
                    {"$set": {"is_active": False}},
                    session=session,
                )
                entry_id = await self.db.insert_one(
                    Collections.AI_ANALYSIS_CACHE,
                    document,
                    session=session,
                )
        except (DatabaseError, PyMongoError) as e:
            logger.error(
                f"Failed to store analysis in cache: {str(e)}",
                extra={
                    "event_type": "cache_write_failure",
                    "user_id": user_id,
                    "scope_id": scope_id,
                    "analysis_type": analysis_type,
                }
            )
            return None

        logger.info(
            "Analysis stored in cache",
            extra={"entry_id": entry_id, "user_id": user_id, "analysis_type": analysis_type}
        )
        return entry_id

    async def save_manual(
        self,
        user_id: str,
        scope_id: str,
        analysis_type: str,
        analysis: str,
        model: Optional[str] = None,
    ) -> Optional[str]:
        """Store a narrative produced outside the report pipeline."""
        generated_at = utc_now()
        input_data = {
            "session_id": scope_id,
            "analysis_type": analysis_type,
            "model_used": model,
            "generated_at": generated_at.isoformat(),
        }

        return await self.store(
            user_id=user_id,
            scope_id=scope_id,
            analysis_type=analysis_type,
            input_data=input_data,
            result=AnalysisResult(analysis=analysis, model_used=model, generated_at=generated_at),
            model_used=model,
        )

    async def invalidate(self, user_id: str, scope_id: str, analysis_type: str) -> int:
        """Deactivate every active entry for a user, scope and type.

        Returns:
            int: Number of entries deactivated
        """
        deactivated = await self.db.update_many(
            Collections.AI_ANALYSIS_CACHE,
            {
                "user_id": user_id,
                "scope_id": scope_id,
                "analysis_type": analysis_type,
                "is_active": True,
            },
            {"$set": {"is_active": False}},
        )

        logger.info(
            f"Invalidated {deactivated} cached analyses",
            extra={"user_id": user_id, "scope_id": scope_id, "analysis_type": analysis_type}
        )
        return deactivated

    async def cleanup_expired(self) -> int:
        """Delete entries whose ``expires_at`` has passed.

        Returns:
            int: Number of entries deleted
        """
        deleted = await self.db.delete_many(
            Collections.AI_ANALYSIS_CACHE,
            {"expires_at": {"$lte": utc_now()}},
        )
        logger.info(f"Deleted {deleted} expired cached analyses")
        return deleted

    async def get_stats(self) -> Dict[str, int]:
        """Summarize the cache contents.

        Returns:
            Dict[str, int]: ``total, ocean, reliability, active, expired, total_tokens``
        """
        now = utc_now()
        pipeline = [
            {
                "$group": {
                    "_id": None,
                    "total": {"$sum": 1},
                    "ocean": {"$sum": {"$cond": [{"$eq": ["$analysis_type", AnalysisType.OCEAN.value]}, 1, 0]}},
                    "reliability": {
                        "$sum": {"$cond": [{"$eq": ["$analysis_type", AnalysisType.RELIABILITY.value]}, 1, 0]}
                    },
                    "active": {"$sum": {"$cond": [{"$eq": ["$is_active", True]}, 1, 0]}},
                    "expired": {"$sum": {"$cond": [{"$lte": ["$expires_at", now]}, 1, 0]}},
                    "total_tokens": {"$sum": {"$ifNull": ["$tokens_used", 0]}},
                }
            }
        ]

        results = await self.db.aggregate(Collections.AI_ANALYSIS_CACHE, pipeline)
        stats = dict.fromkeys(["total", "ocean", "reliability", "active", "expired", "total_tokens"], 0)
        if results:
            stats.update({key: int(results[0].get(key) or 0) for key in stats})
        return stats


__all__ = ["ANALYSIS_CACHE_INDEXES", "AnalysisCache"]
