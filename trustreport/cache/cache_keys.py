"""Cache key definitions for TrustReport.

All Redis keys are built from the patterns below so that invalidation can
target a namespace consistently.
"""

from enum import Enum


class CacheNamespace(str, Enum):
    """Cache namespaces for different data types."""

    REPORT_CONFIG = "report_config"
    SYSTEM_CONFIG = "system_config"


class CacheKeys:
    """Cache key generation."""

    PATTERNS = {
        "report_config_by_exam": "{namespace}:exam:{exam_id}",
        "report_config_default": "{namespace}:default",
        "system_config": "{namespace}:singleton",
    }

    @classmethod
    def report_config(cls, exam_id: str) -> str:
        """Get cache key for the report configuration of an exam."""
        return cls.PATTERNS["report_config_by_exam"].format(
            namespace=CacheNamespace.REPORT_CONFIG.value,
            exam_id=exam_id
        )

    @classmethod
    def default_report_config(cls) -> str:
        """Get cache key for the first stored report configuration (OCEAN reports)."""
        return cls.PATTERNS["report_config_default"].format(
            namespace=CacheNamespace.REPORT_CONFIG.value
        )

    @classmethod
    def system_config(cls) -> str:
        return cls.PATTERNS["system_config"].format(
            namespace=CacheNamespace.SYSTEM_CONFIG.value
        )


__all__ = ["CacheKeys", "CacheNamespace"]
