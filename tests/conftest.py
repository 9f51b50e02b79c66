"""Shared fixtures: settings, token storage and the in-process books service."""

from collections.abc import AsyncGenerator

import httpx
import pytest
import pytest_asyncio

from book_discussion.auth.session import AuthSession
from book_discussion.auth.tokens import MemoryTokenStore
from book_discussion.comments.client import CommentsClient
from book_discussion.config.settings import Settings

from .factories import AUTHOR_ID, BOOK_ID, OTHER_ID, READER_ID
from .fake_books_api import BooksBackend, create_app


@pytest.fixture
def settings() -> Settings:
    """Test settings pointing at the in-process service."""
    return Settings(
        environment="testing",
        api_base_url="http://books.test/api",
        api_timeout_seconds=5.0,
        log_level="DEBUG",
    )


@pytest.fixture
def backend() -> BooksBackend:
    """Books service state with three users and book 7 by user 1."""
    backend = BooksBackend()
    backend.add_user("author-token", AUTHOR_ID, "alice")
    backend.add_user("reader-token", READER_ID, "bob")
    backend.add_user("other-token", OTHER_ID, "carol")
    backend.book_authors[BOOK_ID] = AUTHOR_ID
    return backend


@pytest.fixture
def token_store() -> MemoryTokenStore:
    """Empty token store (anonymous until a test logs in)."""
    return MemoryTokenStore()


@pytest_asyncio.fixture
async def http_client(backend: BooksBackend) -> AsyncGenerator[httpx.AsyncClient, None]:
    """httpx client routed to the fake books service."""
    transport = httpx.ASGITransport(app=create_app(backend))
    async with httpx.AsyncClient(transport=transport) as client:
        yield client


@pytest.fixture
def client(
    settings: Settings, token_store: MemoryTokenStore, http_client: httpx.AsyncClient
) -> CommentsClient:
    """Comments API client bound to the fake service."""
    return CommentsClient(settings, token_store, http_client=http_client)


@pytest.fixture
def session(client: CommentsClient, token_store: MemoryTokenStore) -> AuthSession:
    """Anonymous viewer session."""
    return AuthSession(client, token_store)
