from prometheus_client import Counter, Histogram

STATEMENT_TOTAL = Counter(
    "sequel_statements_total",
    "Statements executed through sequel",
    ["dialect", "operation", "status"],
)

STATEMENT_LATENCY_SECONDS = Histogram(
    "sequel_statement_latency_seconds",
    "Statement execution latency in seconds",
    ["dialect", "operation"],
)

METADATA_CACHE_MISSES_TOTAL = Counter(
    "sequel_metadata_cache_misses_total",
    "Record shapes reflected into column metadata",
    ["shape"],
)
