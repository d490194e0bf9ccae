from prometheus_client import Counter, Histogram

# Low-cardinality labels only: the operation name and its outcome, never keys or buckets.
STORAGE_OPERATIONS = Counter(
    "storage_operations_total",
    "Total storage operations",
    ["method", "result"],
)

STORAGE_OPERATION_LATENCY = Histogram(
    "storage_operation_duration_seconds",
    "Storage operation latency in seconds",
    ["method"],
)

STORAGE_DOWNLOAD_BYTES = Counter(
    "storage_download_bytes_total",
    "Bytes returned by direct downloads",
)


def record_operation(method: str, result: str, duration: float) -> None:
    STORAGE_OPERATIONS.labels(method=method, result=result).inc()
    STORAGE_OPERATION_LATENCY.labels(method=method).observe(duration)
