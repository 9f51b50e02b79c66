# Core infrastructure
from book_discussion.core.context import (
    OperationContext,
    clear_context,
    get_book_id,
    get_context,
    get_request_id,
    get_user_id,
    set_book_id,
    set_request_id,
    set_user_id,
)
from book_discussion.core.logging import configure_structlog, get_logger


__all__ = [
    "OperationContext",
    "clear_context",
    "configure_structlog",
    "get_book_id",
    "get_context",
    "get_logger",
    "get_request_id",
    "get_user_id",
    "set_book_id",
    "set_request_id",
    "set_user_id",
]
