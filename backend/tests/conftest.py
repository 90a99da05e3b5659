"""Pytest configuration and fixtures for Bloom Rent tests.

Each test gets its own in-memory SQLite database; the app's ``get_db``,
email sender, address validator and invitation registry are overridden
per test.
"""

import os

# Settings are read at import time, so configure before importing the app
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["CACHE_ENABLED"] = "false"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["RESEND_API_KEY"] = ""
os.environ["GOOGLE_MAPS_API_KEY"] = ""
os.environ["APP_BASE_URL"] = "http://localhost:3000"

from typing import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from bloomrent.database import Base, get_db  # noqa: E402
from bloomrent.main import app  # noqa: E402
from bloomrent.models.enums import UserRole  # noqa: E402
from bloomrent.models.user import User  # noqa: E402
from bloomrent.services.address_validation import (  # noqa: E402
    AddressValidationError,
    AddressValidationOut,
    NormalizedAddress,
    get_address_validator,
)
from bloomrent.services.email import (  # noqa: E402
    EmailMessage,
    EmailResult,
    EmailSender,
    get_email_sender,
)
from bloomrent.wizard.sender import (  # noqa: E402
    InvitationSendRegistry,
    get_invitation_registry,
)
from factories import headers_for, make_user  # noqa: E402


# ── Fakes ────────────────────────────────────────────────────────

class RecordingEmailSender(EmailSender):
    """Keeps every message; ``fail = True`` makes sends report failure."""

    def __init__(self):
        self.messages: list[EmailMessage] = []
        self.fail = False

    async def send(self, message: EmailMessage) -> EmailResult:
        self.messages.append(message)
        if self.fail:
            return EmailResult(success=False, error="Provider unavailable")
        return EmailResult(success=True, id=f"email-{len(self.messages)}")

    def templates(self) -> list[str]:
        return [m.tags.get("template") for m in self.messages]


class FakeAddressValidator:
    """Echoes the address back, or raises ``error`` when set."""

    def __init__(self):
        self.error: AddressValidationError | None = None
        self.calls = []

    async def validate(self, address):
        self.calls.append(address)
        if self.error:
            raise self.error
        entered = NormalizedAddress(**address.model_dump())
        return AddressValidationOut(
            success=True,
            user_address=entered,
            normalized_address=entered,
            verdict={"possibleNextAction": "ACCEPT"},
            are_identical=True,
            should_prompt_user=False,
        )


# ── Test Database Setup ──────────────────────────────────────────

@pytest_asyncio.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for arranging data and checking results; commit explicitly."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def email_sender() -> RecordingEmailSender:
    return RecordingEmailSender()


@pytest.fixture
def address_validator() -> FakeAddressValidator:
    return FakeAddressValidator()


@pytest.fixture
def send_registry() -> InvitationSendRegistry:
    return InvitationSendRegistry()


@pytest_asyncio.fixture
async def client(
    session_factory, email_sender, address_validator, send_registry
) -> AsyncGenerator[AsyncClient, None]:
    """App client with request-scoped sessions on the test database."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_email_sender] = lambda: email_sender
    app.dependency_overrides[get_address_validator] = lambda: address_validator
    app.dependency_overrides[get_invitation_registry] = lambda: send_registry

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ── Test Data Fixtures ───────────────────────────────────────────

@pytest_asyncio.fixture
async def owner(db_session: AsyncSession) -> User:
    return await make_user(db_session, "owner@example.com", UserRole.OWNER, name="Olivia Owner")


@pytest_asyncio.fixture
async def other_owner(db_session: AsyncSession) -> User:
    return await make_user(db_session, "other@example.com", UserRole.OWNER, name="Oscar Other")


@pytest.fixture
def auth_headers(owner: User) -> dict:
    return headers_for(owner)


@pytest.fixture
def other_headers(other_owner: User) -> dict:
    return headers_for(other_owner)
