"""Errors raised by the comment client and engines."""


class CommentError(Exception):
    """Base comment error."""

    def __init__(self, message: str, code: str = "comment_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class TransportError(CommentError):
    """The remote collaborator was unreachable or answered with a failure status."""

    def __init__(
        self,
        message: str = "Remote request failed",
        status_code: int | None = None,
    ):
        self.status_code = status_code
        super().__init__(message, "transport_error")


class AuthError(CommentError):
    """Bearer token missing, invalid or expired."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, "auth_error")


class ValidationError(CommentError):
    """Input rejected locally before any request was sent."""

    def __init__(self, message: str = "Content cannot be empty"):
        super().__init__(message, "validation_error")


class PermissionDeniedError(CommentError):
    """The viewer lacks the capability for this action; nothing was sent."""

    def __init__(self, message: str = "Permission denied"):
        super().__init__(message, "permission_denied")
