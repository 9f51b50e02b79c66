"""Operation context management using contextvars.

Every user action (load, react, pin, delete, submit) runs under its own
request id so that the log lines it produces, and the outgoing HTTP calls it
makes, can be correlated. The acting user and the book being discussed are
tracked alongside it.
"""

from contextvars import ContextVar
from typing import Any
from uuid import uuid4


# Context variables for operation tracking
request_id_var: ContextVar[str] = ContextVar("request_id", default="")
user_id_var: ContextVar[str | None] = ContextVar("user_id", default=None)
book_id_var: ContextVar[str | None] = ContextVar("book_id", default=None)


def generate_request_id() -> str:
    """Generate a new unique request ID."""
    return str(uuid4())


def get_request_id() -> str:
    """Get the current request ID."""
    return request_id_var.get()


def set_request_id(request_id: str | None = None) -> str:
    """Set the request ID for the current context.

    Args:
        request_id: Optional request ID. If not provided, generates a new one.

    Returns:
        The request ID that was set.
    """
    rid = request_id or generate_request_id()
    request_id_var.set(rid)
    return rid


def get_user_id() -> str | None:
    """Get the current user ID."""
    return user_id_var.get()


def set_user_id(user_id: Any) -> None:
    """Set the user ID for the current context."""
    user_id_var.set(str(user_id) if user_id is not None else None)


def get_book_id() -> str | None:
    """Get the current book ID."""
    return book_id_var.get()


def set_book_id(book_id: Any) -> None:
    """Set the book ID for the current context."""
    book_id_var.set(str(book_id) if book_id is not None else None)


def get_context() -> dict[str, Any]:
    """Get all context variables as a dictionary.

    Returns:
        Dictionary with request_id, user_id and book_id (unset values omitted).
    """
    context: dict[str, Any] = {}

    request_id = get_request_id()
    if request_id:
        context["request_id"] = request_id

    user_id = get_user_id()
    if user_id:
        context["user_id"] = user_id

    book_id = get_book_id()
    if book_id:
        context["book_id"] = book_id

    return context


def clear_context() -> None:
    """Clear all context variables."""
    request_id_var.set("")
    user_id_var.set(None)
    book_id_var.set(None)


class OperationContext:
    """Context manager for the scope of one user action.

    Usage:
        with OperationContext(user_id="42", book_id="7"):
            log.info("reacting")  # Will include request_id, user_id, book_id
    """

    def __init__(
        self,
        request_id: str | None = None,
        user_id: Any = None,
        book_id: Any = None,
    ) -> None:
        self.request_id = request_id
        self.user_id = user_id
        self.book_id = book_id
        self._tokens: dict[str, Any] = {}

    def __enter__(self) -> "OperationContext":
        """Enter context and set variables."""
        self._tokens["request_id"] = request_id_var.set(
            self.request_id or generate_request_id()
        )

        if self.user_id is not None:
            self._tokens["user_id"] = user_id_var.set(str(self.user_id))

        if self.book_id is not None:
            self._tokens["book_id"] = book_id_var.set(str(self.book_id))

        return self

    def __exit__(self, *_: object) -> None:
        """Exit context and restore previous values."""
        for var_name, token in self._tokens.items():
            if var_name == "request_id":
                request_id_var.reset(token)
            elif var_name == "user_id":
                user_id_var.reset(token)
            elif var_name == "book_id":
                book_id_var.reset(token)
