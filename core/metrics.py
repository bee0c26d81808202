from prometheus_client import Counter, Histogram

records_rejected_total = Counter(
    "records_rejected_total",
    "Raw records skipped by the normalizer",
    ["schema", "kind"]
)

writer_fetch_failures_total = Counter(
    "writer_fetch_failures_total",
    "Per-writer fetches that failed or timed out and were treated as empty",
    ["schema"]
)

aggregation_latency = Histogram(
    "aggregation_refresh_seconds",
    "Time spent fetching and decoding one snapshot round"
)
