"""
Observability Module for the order engine

Provides structured logging with correlation IDs (order, invoice, request).
"""

from core.observability.logging import (
    get_logger,
    configure_logging,
    CorrelationContext,
    CorrelatedLogger,
    get_correlation_context,
    with_correlation,
)

__all__ = [
    "get_logger",
    "configure_logging",
    "CorrelationContext",
    "CorrelatedLogger",
    "get_correlation_context",
    "with_correlation",
]
