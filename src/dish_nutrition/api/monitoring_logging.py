#!/usr/bin/env python3
"""
Monitoring and Logging
Structured logging setup and Prometheus metrics for the nutrition service.
"""

import sys
import time
import logging

import structlog
from structlog.stdlib import LoggerFactory
from fastapi import Request
from prometheus_client import Counter, Histogram, Gauge, CONTENT_TYPE_LATEST, generate_latest

from dish_nutrition.models import EstimationResult

logger = structlog.get_logger(__name__)


def configure_logging(level: str = "INFO", log_format: str = "json"):
    """Configure structured logging with Structlog."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper())
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


# Request metrics
REQUEST_COUNT = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status_code']
)
REQUEST_DURATION = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration',
    ['method', 'endpoint']
)

# Estimation metrics
ESTIMATION_REQUESTS = Counter(
    'nutrition_estimations_total',
    'Total dish estimations',
    ['outcome']
)
ESTIMATION_DURATION = Histogram(
    'nutrition_estimation_duration_seconds',
    'Dish estimation duration'
)
CONFIDENCE_NOTES = Counter(
    'nutrition_confidence_notes_total',
    'Degraded-confidence notes recorded during estimation',
    ['stage']
)
REFERENCE_TABLE_SIZE = Gauge(
    'nutrition_reference_table_entries',
    'Entries in the loaded reference tables',
    ['table']
)


def record_estimation(result: EstimationResult, duration: float):
    """Update estimation metrics for one finished dish."""
    outcome = "success" if result.success else "failure"
    ESTIMATION_REQUESTS.labels(outcome=outcome).inc()
    ESTIMATION_DURATION.observe(duration)
    for note in result.confidence_notes:
        CONFIDENCE_NOTES.labels(stage=note.stage).inc()


def record_reference_data(summary: dict):
    for table, size in summary.items():
        REFERENCE_TABLE_SIZE.labels(table=table).set(size)


def metrics_payload():
    """Prometheus exposition body and its content type."""
    return generate_latest(), CONTENT_TYPE_LATEST


class RequestMonitoringMiddleware:
    """Middleware for monitoring HTTP requests."""

    async def __call__(self, request: Request, call_next):
        start_time = time.time()
        method = request.method
        path = request.url.path

        response = await call_next(request)

        duration = time.time() - start_time
        status_code = response.status_code

        REQUEST_COUNT.labels(method=method, endpoint=path, status_code=status_code).inc()
        REQUEST_DURATION.labels(method=method, endpoint=path).observe(duration)

        logger.info(
            "HTTP request",
            method=method,
            path=path,
            status_code=status_code,
            duration=duration,
        )
        return response
