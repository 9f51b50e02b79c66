"""HTTP client for the books service comment endpoints.

This client handles:
- Listing the flat comment set of a book (anonymous)
- Creating comments and replies, reacting, pinning, deleting (bearer auth)
- Verifying the stored session token

Every method raises a CommentError subclass on failure; callers decide
whether to surface it.
"""

from typing import Any, TypeVar
from urllib.parse import quote

import httpx
import structlog
from pydantic import BaseModel
from pydantic import ValidationError as SchemaValidationError

from book_discussion.auth.tokens import TokenStore
from book_discussion.config.settings import Settings
from book_discussion.core.context import get_request_id

from .errors import AuthError, TransportError, ValidationError
from .models import Comment, CommentId, ReactionType
from .schemas import (
    CommentPayload,
    CreateCommentRequest,
    PinResponse,
    ReactionCountsResponse,
    ReactRequest,
    VerifyResponse,
)


logger = structlog.get_logger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)

# Statuses meaning the token is missing, invalid or expired
AUTH_FAILURE_STATUSES = frozenset({httpx.codes.UNAUTHORIZED, httpx.codes.FORBIDDEN})


def _segment(value: Any) -> str:
    """Quote an opaque id for use as one URL path segment."""
    return quote(str(value), safe="")


class CommentsClient:
    """Client for the remote collaborator that owns comment storage."""

    REQUEST_ID_HEADER = "X-Request-ID"

    def __init__(
        self,
        settings: Settings,
        token_store: TokenStore,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Application settings (base URL, timeout).
            token_store: Source of the bearer token, read on every call.
            http_client: Optional pre-built httpx client (tests inject an
                in-process transport here). Owned by the caller when given.
        """
        self.settings = settings
        self.token_store = token_store
        self._base_url = settings.api_base_url.rstrip("/")
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=settings.api_timeout_seconds
        )

    async def aclose(self) -> None:
        """Close the underlying connection pool if this client created it."""
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> "CommentsClient":
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()

    def _headers(self, *, authenticated: bool) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        request_id = get_request_id()
        if request_id:
            headers[self.REQUEST_ID_HEADER] = request_id
        if authenticated:
            token = self.token_store.get()
            if token is None:
                raise AuthError("No session token stored")
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        authenticated: bool,
        json: Any = None,
    ) -> httpx.Response:
        url = f"{self._base_url}{path}"
        headers = self._headers(authenticated=authenticated)

        try:
            response = await self._http.request(method, url, headers=headers, json=json)
        except httpx.TimeoutException as e:
            logger.error("Books API timeout", method=method, path=path, error=str(e))
            raise TransportError("Books API timeout") from e
        except httpx.RequestError as e:
            logger.error("Books API request error", method=method, path=path, error=str(e))
            raise TransportError(f"Books API request error: {e}") from e

        if response.status_code in AUTH_FAILURE_STATUSES:
            logger.warning(
                "Books API rejected credentials",
                method=method,
                path=path,
                status_code=response.status_code,
            )
            raise AuthError(f"Books API rejected credentials: {response.status_code}")

        if not response.is_success:
            logger.error(
                "Books API request failed",
                method=method,
                path=path,
                status_code=response.status_code,
                response_text=response.text[:500],
            )
            raise TransportError(
                f"Books API error: {response.status_code}",
                status_code=response.status_code,
            )

        return response

    @staticmethod
    def _parse(response: httpx.Response, schema: type[SchemaT]) -> SchemaT:
        try:
            return schema.model_validate(response.json())
        except (ValueError, SchemaValidationError) as e:
            raise TransportError(f"Malformed response: {e}") from e

    # ==========================================================================
    # Comments
    # ==========================================================================

    async def list_comments(self, book_id: Any) -> list[Comment]:
        """Fetch the full flat comment set of a book."""
        response = await self._request(
            "GET", f"/books/{_segment(book_id)}/comments", authenticated=False
        )
        try:
            data = response.json()
            if not isinstance(data, list):
                raise TypeError(f"expected a list, got {type(data).__name__}")
            payloads = [CommentPayload.model_validate(item) for item in data]
        except (ValueError, TypeError, SchemaValidationError) as e:
            raise TransportError(f"Malformed response: {e}") from e

        return [Comment.from_payload(p) for p in payloads]

    async def create_comment(
        self, book_id: Any, content: str, parent_id: CommentId | None = None
    ) -> Comment:
        """Create a root comment (parent_id None) or a reply."""
        try:
            body = CreateCommentRequest(content=content, parent_id=parent_id)
        except SchemaValidationError as e:
            raise ValidationError() from e
        response = await self._request(
            "POST",
            f"/books/{_segment(book_id)}/comments",
            authenticated=True,
            json=body.model_dump(by_alias=True),
        )
        return Comment.from_payload(self._parse(response, CommentPayload))

    async def react(
        self, comment_id: CommentId, reaction: ReactionType
    ) -> ReactionCountsResponse:
        """Send a reaction; the server answers with the new counts."""
        body = ReactRequest(reaction=reaction)
        response = await self._request(
            "POST",
            f"/comments/{_segment(comment_id)}/react",
            authenticated=True,
            json=body.model_dump(mode="json"),
        )
        return self._parse(response, ReactionCountsResponse)

    async def toggle_pin(self, comment_id: CommentId) -> bool:
        """Flip the pin flag; returns the server's new value."""
        response = await self._request(
            "POST",
            f"/comments/{_segment(comment_id)}/pin",
            authenticated=True,
            json={},
        )
        return self._parse(response, PinResponse).is_pinned

    async def delete_comment(self, comment_id: CommentId) -> None:
        """Delete a comment. Success is signalled by status only."""
        await self._request(
            "DELETE", f"/comments/{_segment(comment_id)}", authenticated=True
        )

    # ==========================================================================
    # Session
    # ==========================================================================

    async def verify_session(self) -> VerifyResponse:
        """Check the stored token and return the user it belongs to."""
        response = await self._request("GET", "/auth/verify", authenticated=True)
        return self._parse(response, VerifyResponse)
