"""
Prometheus-compatible metrics for the review engine.

Tracks:
- Reviews created (by reviewer kind) and deleted
- Seller replies and moderation reports
- Rejected engine operations (by operation and error type)

Usage:
    from partsmarket.lib.metrics import get_metrics_collector

    metrics = get_metrics_collector()
    metrics.increment_reviews_created(reviewer_kind="buyer")
    metrics.increment_errors(operation="add_reply", error="ConflictError")

    # Export for Prometheus
    prometheus_output = metrics.export_prometheus()
"""

from typing import Dict, Optional, Tuple
from threading import Lock


_HELP_TEXTS = {
    "reviews_created_total": "Total number of seller reviews created",
    "reviews_deleted_total": "Total number of seller reviews deleted",
    "review_replies_total": "Total number of seller replies added to reviews",
    "review_reports_total": "Total number of reviews reported for moderation",
    "review_errors_total": "Total number of rejected review operations",
}


class MetricsCollector:
    """
    Prometheus-style counter collector.

    Thread-safe for concurrent increments from request handlers.
    """

    def __init__(self):
        self._lock = Lock()

        # Counters: key = (metric_name, labels_tuple), value = count
        self._counters: Dict[Tuple[str, Tuple[Tuple[str, str], ...]], int] = {}

    def _get_counter_key(self, metric_name: str, labels: Dict[str, str]) -> Tuple[str, Tuple[Tuple[str, str], ...]]:
        """Generate unique key for counter with sorted labels."""
        return (metric_name, tuple(sorted(labels.items())))

    def _increment(self, metric_name: str, labels: Dict[str, str], amount: int = 1):
        key = self._get_counter_key(metric_name, labels)
        with self._lock:
            self._counters[key] = self._counters.get(key, 0) + amount

    # ===== Review lifecycle =====

    def increment_reviews_created(self, reviewer_kind: str, amount: int = 1):
        """Increment created reviews, labelled by the role that wrote them."""
        self._increment("reviews_created_total", {"reviewer_kind": reviewer_kind.lower()}, amount)

    def increment_reviews_deleted(self, amount: int = 1):
        self._increment("reviews_deleted_total", {}, amount)

    def increment_replies(self, amount: int = 1):
        self._increment("review_replies_total", {}, amount)

    def increment_reports(self, amount: int = 1):
        self._increment("review_reports_total", {}, amount)

    def increment_errors(self, operation: str, error: str, amount: int = 1):
        """
        Increment rejected operations counter.

        Args:
            operation: Engine operation name (create_review, add_reply, ...)
            error: Error class name (ValidationError, NotFoundError, ...)
            amount: Increment amount
        """
        labels = {
            "operation": operation.lower(),
            "error": error,
        }
        self._increment("review_errors_total", labels, amount)

    # ===== Export =====

    def export_prometheus(self) -> str:
        """
        Export all metrics in Prometheus text format.

        Returns:
            Prometheus-compatible text output
        """
        output_lines = []

        # Group counters by metric name
        metrics_by_name: Dict[str, list] = {}
        with self._lock:
            for (metric_name, labels_tuple), value in self._counters.items():
                metrics_by_name.setdefault(metric_name, []).append((dict(labels_tuple), value))

        for metric_name in sorted(metrics_by_name.keys()):
            output_lines.append(f"# HELP {metric_name} {_HELP_TEXTS.get(metric_name, 'Counter metric')}")
            output_lines.append(f"# TYPE {metric_name} counter")

            for labels_dict, value in sorted(metrics_by_name[metric_name], key=lambda x: str(x[0])):
                if labels_dict:
                    labels_str = ",".join([f'{k}="{v}"' for k, v in sorted(labels_dict.items())])
                    output_lines.append(f"{metric_name}{{{labels_str}}} {value}")
                else:
                    output_lines.append(f"{metric_name} {value}")

            output_lines.append("")  # Blank line between metrics

        return "\n".join(output_lines)

    def get_counter_value(self, metric_name: str, labels: Optional[Dict[str, str]] = None) -> int:
        """
        Get current value of a specific counter.

        Args:
            metric_name: Name of the metric
            labels: Exact label set of the counter

        Returns:
            Current counter value
        """
        key = self._get_counter_key(metric_name, labels or {})
        with self._lock:
            return self._counters.get(key, 0)

    def reset_all(self):
        """Reset all counters (for testing)."""
        with self._lock:
            self._counters.clear()


# Global singleton instance
_metrics_collector: Optional[MetricsCollector] = None
_metrics_lock = Lock()


def get_metrics_collector() -> MetricsCollector:
    """
    Get global metrics collector singleton.

    Returns:
        MetricsCollector instance
    """
    global _metrics_collector
    if _metrics_collector is None:
        with _metrics_lock:
            if _metrics_collector is None:
                _metrics_collector = MetricsCollector()
    return _metrics_collector


def reset_metrics():
    """Reset global metrics collector (for testing)."""
    with _metrics_lock:
        if _metrics_collector is not None:
            _metrics_collector.reset_all()
