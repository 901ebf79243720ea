"""
Metrics collection for the Formsheets API.
"""
from typing import Dict, Any
from collections import defaultdict
from datetime import datetime, timezone

# In-memory metrics store (use Prometheus/StatsD in production)
_metrics: Dict[str, Any] = {
    "requests": defaultdict(int),
    "errors": defaultdict(int),
    "ingestions": defaultdict(int),
    "response_times": [],
    "start_time": datetime.now(timezone.utc).isoformat(),
}


def record_request(method: str, path: str, status_code: int, duration_ms: float):
    """Record HTTP request metrics."""
    _metrics["requests"][f"{method} {path}"] += 1
    _metrics["requests"][f"status_{status_code}"] += 1

    # Keep last 1000 response times
    _metrics["response_times"].append(duration_ms)
    if len(_metrics["response_times"]) > 1000:
        _metrics["response_times"] = _metrics["response_times"][-1000:]


def record_error(error_type: str, path: str = ""):
    """Record error metrics."""
    _metrics["errors"][error_type] += 1
    if path:
        _metrics["errors"][f"{error_type}:{path}"] += 1


def record_ingestion(form_type: str, status: str):
    """Record one ingestion attempt."""
    _metrics["ingestions"][f"{form_type}:{status}"] += 1


def get_metrics() -> Dict[str, Any]:
    """Get current metrics."""
    response_times = _metrics["response_times"]
    avg_response_time = sum(response_times) / len(response_times) if response_times else 0
    p95_response_time = sorted(response_times)[int(len(response_times) * 0.95)] if len(response_times) >= 20 else 0

    uptime_seconds = (datetime.now(timezone.utc) - datetime.fromisoformat(_metrics["start_time"])).total_seconds()

    return {
        "uptime_seconds": int(uptime_seconds),
        "requests": {
            "total": sum(
                count for key, count in _metrics["requests"].items() if not key.startswith("status_")
            ),
            "by_endpoint": dict(_metrics["requests"]),
        },
        "errors": {
            "total": sum(
                count for key, count in _metrics["errors"].items() if ":" not in key
            ),
            "by_type": dict(_metrics["errors"]),
        },
        "ingestions": dict(_metrics["ingestions"]),
        "performance": {
            "avg_response_time_ms": round(avg_response_time, 2),
            "p95_response_time_ms": round(p95_response_time, 2),
        },
    }


def reset_metrics():
    """Reset all metrics (for testing)."""
    _metrics["requests"].clear()
    _metrics["errors"].clear()
    _metrics["ingestions"].clear()
    _metrics["response_times"] = []
    _metrics["start_time"] = datetime.now(timezone.utc).isoformat()
