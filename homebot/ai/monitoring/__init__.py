"""
Monitoring Module - Logging, metrics and audit for AI operations.

- ai_logger: structured JSON events for each pipeline stage
- ai_metrics: in-memory token/latency/cost aggregates
- audit_log: append-only JSON lines record of every dispatch

Usage:
======
    from homebot.ai.monitoring import ai_logger, ai_metrics

    ai_logger.log_request(request_id, prompt, provider, model)
    stats = ai_metrics.get_stats().to_dict()
"""

from homebot.ai.monitoring.logger import AILogger, ai_logger
from homebot.ai.monitoring.metrics import AIMetrics, ai_metrics
from homebot.ai.monitoring.audit import AuditLog, audit_log

__all__ = [
    "AILogger",
    "ai_logger",
    "AIMetrics",
    "ai_metrics",
    "AuditLog",
    "audit_log",
]
