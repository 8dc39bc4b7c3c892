"""
Observability: structured logging and request correlation.

Usage:
    from agenda.observability import configure_logging, get_logger, RequestContext

    configure_logging("DEBUG")
    logger = get_logger(__name__)

    with RequestContext(worker_id="w-1"):
        logger.info("Agenda loaded")
"""

from .context import RequestContext, generate_request_id, get_request_id, get_worker_id
from .logging import (
    CorrelationIdMiddleware,
    HumanFormatter,
    JSONFormatter,
    configure_logging,
    get_logger,
)

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "JSONFormatter",
    "HumanFormatter",
    "CorrelationIdMiddleware",
    # Context
    "RequestContext",
    "get_request_id",
    "get_worker_id",
    "generate_request_id",
]
