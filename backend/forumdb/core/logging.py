"""Structured logging configuration."""
import logging

import structlog
from typing import Any, Optional
from forumdb.core.errors import BaseServiceError, ErrorCategory


def configure_logging(settings: Any) -> None:
    """Configure structured logging."""
    level = logging.getLevelName(getattr(settings, "log_level", "INFO"))
    if not isinstance(level, int):
        level = logging.INFO

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer() if not settings.debug else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str):
    """Get a structured logger."""
    return structlog.get_logger(name)


def log_error(
    logger: structlog.BoundLogger,
    error: BaseServiceError,
    additional_context: Optional[dict[str, Any]] = None,
) -> None:
    """
    구조화된 에러 로그 기록.

    Args:
        logger: Structured logger 인스턴스
        error: BaseServiceError 인스턴스
        additional_context: 추가 컨텍스트 정보
    """
    error_dict = error.to_dict()
    if additional_context:
        error_dict.update(additional_context)

    if error.category is ErrorCategory.TRANSIENT:
        logger.warning("error_transient", **error_dict)
    else:
        logger.error("error_permanent", **error_dict)

    if error.original_error is not None:
        logger.error(
            "error_original_exception",
            error_type=type(error.original_error).__name__,
            operation=error.operation,
        )
