"""Book Discussion client - application wiring."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import httpx

from book_discussion.auth.session import AuthSession
from book_discussion.auth.tokens import FileTokenStore, MemoryTokenStore, TokenStore
from book_discussion.comments.client import CommentsClient
from book_discussion.comments.models import Confirmer
from book_discussion.comments.section import CommentSection
from book_discussion.config import Settings, get_settings
from book_discussion.core.logging import configure_structlog, get_logger


logger = get_logger(__name__)


class AppState:
    """Application state container."""

    def __init__(
        self,
        settings: Settings,
        token_store: TokenStore,
        client: CommentsClient,
        session: AuthSession,
    ) -> None:
        self.settings = settings
        self.token_store = token_store
        self.client = client
        self.session = session

    def open_section(
        self, book_id: Any, content_author_id: Any, confirmer: Confirmer
    ) -> CommentSection:
        """Build the comment section of one book (not yet loaded)."""
        return CommentSection(
            book_id,
            content_author_id,
            self.client,
            self.session,
            confirmer=confirmer,
            settings=self.settings,
        )


@asynccontextmanager
async def lifespan(
    settings: Settings | None = None,
    *,
    token_store: TokenStore | None = None,
    http_client: httpx.AsyncClient | None = None,
    configure_logging: bool = True,
) -> AsyncGenerator[AppState, None]:
    """Set up logging, the API client and the viewer session.

    Args:
        settings: Application settings (defaults to the cached ones)
        token_store: Token storage (defaults to the file in ``settings.token_file``,
            or to memory when running in the testing environment)
        http_client: Optional httpx client, owned by the caller
        configure_logging: Whether to install the structlog configuration
    """
    settings = settings or get_settings()
    if configure_logging:
        configure_structlog(settings)

    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
        api_base_url=settings.api_base_url,
    )

    if token_store is None:
        if settings.is_testing:
            token_store = MemoryTokenStore()
        else:
            token_store = FileTokenStore(settings.token_file)
    client = CommentsClient(settings, token_store, http_client=http_client)
    session = AuthSession(client, token_store)

    try:
        viewer = await session.verify()
        logger.info("session_ready", authenticated=viewer.is_authenticated)
        yield AppState(settings, token_store, client, session)
    finally:
        await client.aclose()
        logger.info("application_stopped")
