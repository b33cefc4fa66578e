"""
Monitoring module exports.
"""

from testscribe.monitoring.logger import (
    ContextLogAdapter,
    JSONFormatter,
    get_logger,
    log_performance_metric,
    log_test_event,
    setup_logging,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "log_test_event",
    "log_performance_metric",
    "JSONFormatter",
    "ContextLogAdapter",
]
