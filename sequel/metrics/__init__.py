from .registry import (
    METADATA_CACHE_MISSES_TOTAL,
    STATEMENT_LATENCY_SECONDS,
    STATEMENT_TOTAL,
)

__all__ = [
    "STATEMENT_TOTAL",
    "STATEMENT_LATENCY_SECONDS",
    "METADATA_CACHE_MISSES_TOTAL",
]
