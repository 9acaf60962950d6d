# backend/app/metrics.py
from prometheus_client import Counter, Histogram

from app.models.request import RequestStatus

# === Core metrics (definitions ONLY here) ===
requests_created_total = Counter(
    "item_requests_created_total", "Item requests created"
)

status_updates_total = Counter(
    "item_request_status_updates_total", "Status changes applied", ["status"]
)

batch_items_total = Counter(
    "batch_items_total", "Batch items processed", ["op", "outcome"]
)

batch_size = Histogram(
    "batch_size", "Items per batch call", ["op"],
    buckets=(1, 2, 5, 10, 25, 50, 100, 250),
)

request_latency_seconds = Histogram(
    "request_latency_seconds", "Request latency", ["method"]
)

def init_metrics_zero():
    # create label combos at 0 so Grafana never sees “no data”
    for s in RequestStatus:
        status_updates_total.labels(status=s.value).inc(0)
    for op in ("update", "delete"):
        for outcome in ("success", "not_found", "error"):
            batch_items_total.labels(op=op, outcome=outcome).inc(0)

    # unlabeled counters – make them visible
    requests_created_total.inc(0)
