#!/usr/bin/env python3
"""
Error Handling
Exception hierarchy for the estimation service, retry policy for the external
recipe source, and the JSON error responses returned by the HTTP layer.
"""

import uuid
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple, Type

import sentry_sdk
import structlog
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from tenacity import (
    before_sleep_log, retry, retry_if_exception_type, stop_after_attempt, wait_exponential
)

logger = structlog.get_logger(__name__)


class ErrorSeverity(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    VALIDATION = "validation"
    PROCESSING = "processing"
    REFERENCE_DATA = "reference_data"
    EXTERNAL_API = "external_api"
    UNKNOWN = "unknown"


class NutritionEstimatorError(Exception):
    """Base exception for nutrition estimation errors."""

    def __init__(self, message: str, error_code: str = None, details: Dict[str, Any] = None,
                 severity: ErrorSeverity = ErrorSeverity.MEDIUM,
                 category: ErrorCategory = ErrorCategory.PROCESSING):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.severity = severity
        self.category = category
        self.timestamp = datetime.now(timezone.utc)
        self.trace_id = str(uuid.uuid4())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.error_code,
            "message": self.message,
            "severity": self.severity.value,
            "category": self.category.value,
            "trace_id": self.trace_id,
            "timestamp": self.timestamp.isoformat(),
            "details": self.details,
        }


class ReferenceDataError(NutritionEstimatorError):
    """A reference table file is missing, unreadable or malformed."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("severity", ErrorSeverity.HIGH)
        super().__init__(message, category=ErrorCategory.REFERENCE_DATA, **kwargs)


class RecipeSourceError(NutritionEstimatorError):
    """The external recipe source failed or returned something unusable."""

    def __init__(self, message: str, source: str = None, status_code: int = None, **kwargs):
        super().__init__(message, category=ErrorCategory.EXTERNAL_API, **kwargs)
        self.source = source
        self.status_code = status_code


class RequestValidationFailure(NutritionEstimatorError):
    """The HTTP request body is missing required data."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("severity", ErrorSeverity.LOW)
        super().__init__(message, category=ErrorCategory.VALIDATION, **kwargs)


def retry_external_call(max_attempts: int = 3, base_delay: float = 1.0, max_delay: float = 10.0,
                        exceptions: Tuple[Type[Exception], ...] = (RecipeSourceError,)) -> Callable:
    """
    Retry decorator for calls to external services.

    Retries with exponential backoff on the given exception types and re-raises
    the last error once attempts are exhausted.

    Args:
        max_attempts: Total attempts including the first call
        base_delay: Initial backoff in seconds
        max_delay: Upper bound for a single backoff
        exceptions: Exception types that trigger a retry
    """
    return retry(
        stop=stop_after_attempt(max(1, max_attempts)),
        wait=wait_exponential(multiplier=base_delay, max=max_delay),
        retry=retry_if_exception_type(exceptions),
        before_sleep=before_sleep_log(logging.getLogger(__name__), logging.WARNING),
        reraise=True,
    )


def init_error_tracking(dsn: Optional[str], environment: str = "development") -> bool:
    """Enable Sentry reporting when a DSN is configured."""
    if not dsn:
        return False
    sentry_sdk.init(dsn=dsn, traces_sample_rate=0.1, environment=environment)
    logger.info("Sentry error tracking enabled", environment=environment)
    return True


def bad_request_response(message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": message})


def internal_error_response(exc: Exception) -> JSONResponse:
    """Report an unexpected fault and build the 500 response body."""
    error_id = str(uuid.uuid4())
    logger.error("Unhandled exception", error_id=error_id,
                 error_type=type(exc).__name__, error=str(exc))
    sentry_sdk.capture_exception(exc)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "message": str(exc), "error_id": error_id},
    )


class APIErrorHandler:
    """Centralized API error handling."""

    @staticmethod
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Malformed JSON or wrong field types are reported as a bad request."""
        logger.warning("Request validation failed", path=request.url.path, errors=len(exc.errors()))
        return bad_request_response("Invalid request body")

    @staticmethod
    async def estimator_error_handler(request: Request, exc: NutritionEstimatorError) -> JSONResponse:
        if isinstance(exc, RequestValidationFailure):
            return bad_request_response(exc.message)
        return internal_error_response(exc)

    @staticmethod
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        return internal_error_response(exc)

    @classmethod
    def register(cls, app) -> None:
        app.add_exception_handler(RequestValidationError, cls.validation_error_handler)
        app.add_exception_handler(NutritionEstimatorError, cls.estimator_error_handler)
        app.add_exception_handler(Exception, cls.general_exception_handler)
