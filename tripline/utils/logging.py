"""Structured logging for engine operations."""

import logging
from typing import Any

logger = logging.getLogger(__name__)


class StructuredOperationLogger:
    """Structured logger for itinerary operations."""

    def log_operation(
        self,
        operation: str,
        itinerary_id: str,
        outcome: str,
        latency_ms: float,
        segment_id: str | None = None,
        error_code: str | None = None,
        **fields: Any,
    ) -> None:
        """Log one operation with structured data."""
        log_data: dict[str, Any] = {
            "operation": operation,
            "itinerary_id": itinerary_id,
            "outcome": outcome,
            "latency_ms": round(latency_ms, 2),
        }

        if segment_id:
            log_data["segment_id"] = segment_id
        if error_code:
            log_data["error_code"] = error_code
        log_data.update(fields)

        log_msg = f"Itinerary operation: {operation} - {outcome}"

        if outcome == "success":
            logger.info(log_msg, extra={"structured": log_data})
        else:
            logger.warning(log_msg, extra={"structured": log_data})
