"""Cache module for TrustReport.

Redis caches configuration documents; MongoDB holds the AI analysis cache.
"""

from trustreport.cache.analysis_cache import AnalysisCache
from trustreport.cache.cache_keys import CacheKeys
from trustreport.cache.cache_manager import CacheManager

__all__ = [
    "AnalysisCache",
    "CacheKeys",
    "CacheManager",
]
