from prometheus_client import Counter, Histogram

MEMBERS_SYNC_ROWS = Counter(
    "members_cache_rows_upserted_total",
    "Member rows written to the local cache",
    ["mode"],
)

MEMBERS_SYNC_FAILURES = Counter(
    "members_cache_sync_failures_total",
    "Member syncs that fetched nothing or stopped part-way",
    ["mode", "kind"],
)

MEMBERS_SYNC_DURATION = Histogram(
    "members_cache_sync_duration_seconds",
    "Duration of a members cache sync",
    ["mode"],
)

ASSIGNMENT_LOOKUPS = Counter(
    "assignment_lookups_total",
    "Assignment resolutions by matching strategy",
    ["strategy"],
)
