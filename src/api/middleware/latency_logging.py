"""Request latency logging middleware."""

import logging
import re
import time
from collections import defaultdict
from typing import Callable

from fastapi import Request, Response

logger = logging.getLogger(__name__)

# Log level thresholds in milliseconds
SLOW_REQUEST_THRESHOLD_MS = 1000
VERY_SLOW_REQUEST_THRESHOLD_MS = 3000

PROBE_PATHS = frozenset({"/health", "/health/ready"})

_UUID_PATTERN = re.compile(r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.IGNORECASE)


def normalize_path(path: str) -> str:
    """Collapse identifiers so /posts/<uuid>/like groups as /posts/{id}/like."""
    return _UUID_PATTERN.sub("{id}", path)


class LatencyStats:
    """Rolling window of request latencies, per normalized path."""

    def __init__(self, max_samples: int = 1000) -> None:
        self._samples: list[tuple[str, float]] = []
        self._max_samples = max_samples

    def record(self, path: str, latency_ms: float) -> None:
        self._samples.append((normalize_path(path), latency_ms))
        if len(self._samples) > self._max_samples:
            del self._samples[: len(self._samples) - self._max_samples]

    def get_stats(self) -> dict:
        latencies = sorted(latency for _, latency in self._samples)
        total = len(latencies)
        if not total:
            return {"total_requests": 0, "avg_latency_ms": 0, "p50_latency_ms": 0, "p95_latency_ms": 0}

        return {
            "total_requests": total,
            "avg_latency_ms": round(sum(latencies) / total, 2),
            "p50_latency_ms": round(latencies[int(total * 0.5)], 2),
            "p95_latency_ms": round(latencies[min(int(total * 0.95), total - 1)], 2),
        }

    def get_stats_by_path(self) -> dict:
        by_path: dict[str, list[float]] = defaultdict(list)
        for path, latency in self._samples:
            by_path[path].append(latency)

        return {
            path: {
                "count": len(latencies),
                "avg_ms": round(sum(latencies) / len(latencies), 2),
                "max_ms": round(max(latencies), 2),
            }
            for path, latencies in by_path.items()
        }


_latency_stats: LatencyStats | None = None


def get_latency_stats() -> LatencyStats:
    """Get or create the global latency stats instance."""
    global _latency_stats
    if _latency_stats is None:
        _latency_stats = LatencyStats()
    return _latency_stats


def _log_request(method: str, path: str, status_code: int, latency_ms: float, failed: bool) -> None:
    message = f"{method} {path} - {status_code} - {latency_ms:.2f}ms"

    if path in PROBE_PATHS:
        if latency_ms > 100:
            logger.debug(message)
    elif failed or status_code >= 500:
        logger.error(message)
    elif latency_ms > VERY_SLOW_REQUEST_THRESHOLD_MS:
        logger.error("VERY SLOW REQUEST: %s", message)
    elif latency_ms > SLOW_REQUEST_THRESHOLD_MS:
        logger.warning("SLOW REQUEST: %s", message)
    elif status_code >= 400:
        logger.warning(message)
    else:
        logger.info(message)


async def latency_logging_with_stats_middleware(request: Request, call_next: Callable) -> Response:
    """Log every request with its latency and record it in the stats window.

    Probe endpoints are neither recorded nor logged unless slow.
    """
    start_time = time.perf_counter()
    path = request.url.path
    response = None
    failed = False

    try:
        response = await call_next(request)
        return response
    except Exception:
        failed = True
        raise
    finally:
        latency_ms = (time.perf_counter() - start_time) * 1000
        if path not in PROBE_PATHS:
            get_latency_stats().record(path, latency_ms)
        status_code = response.status_code if response else 500
        _log_request(request.method, path, status_code, latency_ms, failed)
