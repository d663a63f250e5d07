# Core infrastructure
from lms.core.context import (
    clear_context,
    get_class_id,
    get_context,
    get_request_id,
    get_user_id,
    set_class_id,
    set_request_id,
    set_user_id,
)
from lms.core.logging import configure_structlog, get_logger
from lms.core.middleware import RequestContextMiddleware


__all__ = [
    "RequestContextMiddleware",
    "clear_context",
    "configure_structlog",
    "get_class_id",
    "get_context",
    "get_logger",
    "get_request_id",
    "get_user_id",
    "set_class_id",
    "set_request_id",
    "set_user_id",
]
