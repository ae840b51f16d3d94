"""Observability utilities."""

from .audit import AuditLogRecord, AuditMiddleware, log_security_event
from .metrics import (
    NOTIFICATION_FAILURE_COUNTER,
    OTP_REQUEST_COUNTER,
    OTP_VERIFY_COUNTER,
    REQUEST_COUNTER,
    REQUEST_ERROR_COUNTER,
    REQUEST_LATENCY_SECONDS,
    SUBMISSION_COUNTER,
    PrometheusMiddleware,
    metrics_router,
)
from .tracing import (
    configure_tracing,
    instrument_fastapi_app,
    instrument_sqlalchemy_engine,
    workflow_span,
)

__all__ = [
    "AuditLogRecord",
    "AuditMiddleware",
    "NOTIFICATION_FAILURE_COUNTER",
    "OTP_REQUEST_COUNTER",
    "OTP_VERIFY_COUNTER",
    "PrometheusMiddleware",
    "REQUEST_COUNTER",
    "REQUEST_ERROR_COUNTER",
    "REQUEST_LATENCY_SECONDS",
    "SUBMISSION_COUNTER",
    "configure_tracing",
    "instrument_fastapi_app",
    "instrument_sqlalchemy_engine",
    "log_security_event",
    "metrics_router",
    "workflow_span",
]
