"""CloudWatch custom metrics for the external calls the assistant makes.

Two kinds of calls are tracked:

* **salon_api** reads (``GET /appointments``, ``GET /clients``, ...):
  request count, latency and errors.
* **anthropic** streams: request count, time to the first chunk, total
  stream duration, chunk count and errors.

Data points are buffered in memory and pushed by a daemon thread every
``FLUSH_INTERVAL_SECONDS``.  With ``METRICS_ENABLED`` unset (local dev,
tests) they are only logged at DEBUG level.

>>> from salon_insights.services.metrics import metrics
>>> metrics.record_call("salon_api", "GET /clients", latency_ms=87.0)
>>> metrics.record_stream("anthropic", first_chunk_ms=420.0, total_ms=3100.0, chunks=57)
"""

from __future__ import annotations

import atexit
import logging
import os
import threading
import time
from datetime import UTC, datetime
from typing import Any

logger = logging.getLogger(__name__)

NAMESPACE = "SalonInsights"
FLUSH_INTERVAL_SECONDS = 60
MAX_BATCH_SIZE = 1_000  # CloudWatch API limit per PutMetricData call


def _dims(**pairs: str) -> list[dict[str, str]]:
    return [{"Name": name, "Value": value} for name, value in pairs.items()]


class MetricsClient:
    """Batched CloudWatch metrics publisher."""

    def __init__(self) -> None:
        self._enabled = os.getenv("METRICS_ENABLED", "false").lower() == "true"
        self._buffer: list[dict[str, Any]] = []
        self._lock = threading.Lock()
        self._cw_client = None

        if self._enabled:
            self._start_flush_thread()

    def _get_cw_client(self):
        if self._cw_client is None:
            import boto3

            self._cw_client = boto3.client("cloudwatch")
        return self._cw_client

    # ── Recording ─────────────────────────────────────────────────────

    def _point(
        self,
        name: str,
        value: float,
        unit: str,
        dimensions: list[dict[str, str]],
    ) -> None:
        with self._lock:
            self._buffer.append(
                {
                    "MetricName": name,
                    "Dimensions": dimensions,
                    "Timestamp": datetime.now(UTC),
                    "Value": value,
                    "Unit": unit,
                }
            )

    def record_call(self, service: str, operation: str, latency_ms: float) -> None:
        """Record a successful request/response call."""
        self._point("Calls/Count", 1, "Count", _dims(Service=service, Status="success"))
        self._point(
            "Calls/Latency", latency_ms, "Milliseconds",
            _dims(Service=service, Operation=operation),
        )
        logger.debug("Metric: %s %s ok latency=%.1fms", service, operation, latency_ms)

    def record_stream(
        self,
        service: str,
        *,
        first_chunk_ms: float | None,
        total_ms: float,
        chunks: int,
    ) -> None:
        """Record a completed streaming call.

        *first_chunk_ms* is ``None`` when the stream ended without any chunk.
        """
        self._point("Calls/Count", 1, "Count", _dims(Service=service, Status="success"))
        self._point("Stream/Duration", total_ms, "Milliseconds", _dims(Service=service))
        self._point("Stream/Chunks", chunks, "Count", _dims(Service=service))
        if first_chunk_ms is not None:
            self._point(
                "Stream/TimeToFirstChunk", first_chunk_ms, "Milliseconds",
                _dims(Service=service),
            )
        logger.debug(
            "Metric: %s stream ok first_chunk=%sms total=%.1fms chunks=%d",
            service,
            f"{first_chunk_ms:.1f}" if first_chunk_ms is not None else "-",
            total_ms,
            chunks,
        )

    def record_failure(
        self,
        service: str,
        operation: str,
        error_type: str,
        latency_ms: float = 0,
    ) -> None:
        """Record a failed call (request/response or stream)."""
        self._point("Calls/Count", 1, "Count", _dims(Service=service, Status="failure"))
        self._point(
            "Calls/Errors", 1, "Count",
            _dims(Service=service, Operation=operation, ErrorType=error_type),
        )
        if latency_ms > 0:
            self._point(
                "Calls/Latency", latency_ms, "Milliseconds",
                _dims(Service=service, Operation=operation),
            )
        logger.debug(
            "Metric: %s %s failure error=%s latency=%.1fms",
            service, operation, error_type, latency_ms,
        )

    # ── Publishing ────────────────────────────────────────────────────

    def flush(self) -> int:
        """Send buffered metrics to CloudWatch.  Returns count sent."""
        with self._lock:
            if not self._buffer:
                return 0
            batch = self._buffer[:]
            self._buffer.clear()

        if not self._enabled:
            logger.debug("Metrics flush skipped (not enabled): %d items", len(batch))
            return 0

        sent = 0
        try:
            cw = self._get_cw_client()
            for i in range(0, len(batch), MAX_BATCH_SIZE):
                chunk = batch[i : i + MAX_BATCH_SIZE]
                cw.put_metric_data(Namespace=NAMESPACE, MetricData=chunk)
                sent += len(chunk)
            logger.info("Flushed %d metrics to CloudWatch", sent)
        except Exception:
            logger.exception("Failed to flush metrics to CloudWatch")
        return sent

    def _start_flush_thread(self) -> None:
        def _loop():
            while True:
                time.sleep(FLUSH_INTERVAL_SECONDS)
                try:
                    self.flush()
                except Exception:
                    logger.exception("Metrics flush thread error")

        t = threading.Thread(target=_loop, daemon=True, name="metrics-flush")
        t.start()
        atexit.register(self.flush)
        logger.info(
            "Metrics flush thread started (interval=%ds)", FLUSH_INTERVAL_SECONDS,
        )


# ── Module-level singleton ──────────────────────────────────────────
metrics = MetricsClient()
