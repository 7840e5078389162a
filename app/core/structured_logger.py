"""
Structured logging normalization.

Single contract for lifecycle logs (startup, polling, ledger writes,
update failures):
- component
- operation
- correlation_id (optional)
- outcome
- duration_ms (optional, omitted if None)
- reason (optional)

Do not log tokens or full message payloads.
"""
from logging import Logger
from typing import Optional


def log_event(
    logger: Logger,
    *,
    component: str,
    operation: str,
    correlation_id: Optional[str] = None,
    outcome: str,
    duration_ms: Optional[int] = None,
    reason: Optional[str] = None,
    level: str = "info",
    message: Optional[str] = None,
) -> None:
    """
    Emit structured log event.

    Args:
        logger: Logger instance
        component: Component name (e.g., "polling", "telegram", "referrals", "shutdown")
        operation: Operation name (e.g., "polling_start", "update_processing", "override")
        correlation_id: Update/instance identifier (optional)
        outcome: Outcome (e.g., "success", "failed", "denied", "cancelled")
        duration_ms: Duration in milliseconds (omitted if None)
        reason: Short explanation (optional)
        level: Log level ("info", "warning", "error", "critical", "debug")
        message: Optional override message (defaults to "<component> <operation> outcome=<outcome>")
    """
    extra: dict = {
        "component": component,
        "operation": operation,
        "outcome": outcome,
    }
    if correlation_id is not None:
        extra["correlation_id"] = str(correlation_id)
    if duration_ms is not None:
        extra["duration_ms"] = duration_ms
    if reason is not None:
        extra["reason"] = reason

    msg = message or f"{component} {operation} outcome={outcome}"
    if reason is not None and message is None:
        msg = f"{msg} reason={reason}"
    log_method = getattr(logger, level.lower(), logger.info)
    log_method(msg, extra=extra)
