"""Global test configuration and fixtures for TokenMeter API."""

from collections.abc import AsyncGenerator
from typing import Awaitable, Callable
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from src.api.core.constants import BILLING_SECRET_HEADER, JWT_ALGORITHM
from src.database.connection import create_engine_for_url, create_session_factory
from src.database.models import (
    Account,
    AccountStatus,
    Base,
    TransactionType,
    User,
)
from src.modules.billing.ledger import LedgerService
from src.modules.billing.settings import SystemSettingsService
from src.redis.client import get_redis_client
from src.utils.settings.auth import AuthSettings
from src.utils.settings.billing import BillingSettings

from tests.factories import AccountFactory, PricingPackageFactory, UserFactory
from tests.utils.fakes import FakeRedis, RecordingAlertPublisher

BASE_URL = "http://test-tokenmeter-api"


@pytest.fixture(autouse=True)
def disable_external_cache(monkeypatch):
    """Stub cache helpers so tests do not require Redis."""

    async def _noop_get_cache(*_args, **_kwargs):
        return None

    async def _noop_set_cache(*_args, **_kwargs):
        return True

    async def _noop_delete(*_args, **_kwargs):
        return 0

    monkeypatch.setattr("src.cache.decorator._get_cache", _noop_get_cache)
    monkeypatch.setattr("src.cache.decorator._set_cache", _noop_set_cache)
    monkeypatch.setattr("src.cache.decorator._delete_cache", _noop_delete)
    monkeypatch.setattr("src.cache.decorator._invalidate_by_tag", _noop_delete)


@pytest_asyncio.fixture
async def async_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """File-backed SQLite database per test, so concurrent sessions really race."""
    engine = create_engine_for_url(f"sqlite+aiosqlite:///{tmp_path / 'tokenmeter.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(async_engine)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def flat_pricing(db_session: AsyncSession):
    """Multiplier 1.0 and no welcome bonus, so billable tokens equal raw tokens."""
    return await SystemSettingsService(db_session).update_settings(
        {"default_multiplier": 1.0, "new_account_bonus": 0}
    )


@pytest.fixture
def alert_publisher() -> RecordingAlertPublisher:
    return RecordingAlertPublisher()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest_asyncio.fixture
async def app(
    session_factory, alert_publisher, fake_redis
) -> AsyncGenerator[FastAPI, None]:
    """Create FastAPI application with lifespan manager for testing."""
    from src.main import app

    app.state.session_factory = session_factory
    app.state.alert_publisher = alert_publisher
    app.dependency_overrides[get_redis_client] = lambda: fake_redis

    async with LifespanManager(app):
        yield app

    app.dependency_overrides.clear()
    app.state.session_factory = None
    app.state.alert_publisher = None


# Test Data Fixtures
@pytest.fixture
def create_account(
    db_session: AsyncSession,
) -> Callable[..., Awaitable[Account]]:
    """Create an account and fund it through the ledger."""

    async def _create(
        user_id: UUID | None = None,
        balance: int = 0,
        status: AccountStatus = AccountStatus.ACTIVE,
        **fields,
    ) -> Account:
        account = await AccountFactory.create_async(
            db_session, user_id=user_id or uuid4(), status=status, **fields
        )
        if balance:
            LedgerService(db_session).append(
                account,
                TransactionType.ADMIN_GRANT,
                balance,
                description="Test funding",
            )
        await db_session.commit()
        return account

    return _create


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    user = await UserFactory.create_async(db_session, name="Test User")
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def test_admin_user(db_session: AsyncSession) -> User:
    user = await UserFactory.create_async(db_session, name="Admin User", admin=True)
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def test_superadmin_user(db_session: AsyncSession) -> User:
    user = await UserFactory.create_async(
        db_session, name="Superadmin User", superadmin=True
    )
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def test_package(db_session: AsyncSession):
    package = await PricingPackageFactory.create_async(
        db_session, name="Starter", token_amount=150_000, price_minor_units=1_500
    )
    await db_session.commit()
    return package


# JWT Token Fixtures
@pytest.fixture()
def jwt_token_factory() -> Callable[..., str]:
    """Factory for creating JWT tokens for test users."""
    auth_settings = AuthSettings()

    def create_token(
        user_id: str,
        email: str,
        name: str = "Test User",
        roles: list[str] | None = None,
    ) -> str:
        payload = {
            "sub": user_id,
            "email": email,
            "role": "authenticated",
            "aud": auth_settings.JWT_AUDIENCE,
            "user_metadata": {"full_name": name},
            "app_metadata": {"provider": "email", "roles": roles or []},
        }
        return jwt.encode(payload, auth_settings.JWT_SECRET, algorithm=JWT_ALGORITHM)

    return create_token


def _token_for(jwt_token_factory, user: User) -> str:
    return jwt_token_factory(str(user.id), user.email, user.name, list(user.roles))


# HTTP Client Fixtures
@pytest_asyncio.fixture
async def public_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url=BASE_URL) as ac:
        yield ac


@pytest_asyncio.fixture
async def authorized_client(
    app: FastAPI, test_user: User, jwt_token_factory
) -> AsyncGenerator[AsyncClient, None]:
    """Create HTTP client with JWT authorization headers."""
    token = _token_for(jwt_token_factory, test_user)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url=BASE_URL,
        headers={"Authorization": f"Bearer {token}"},
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def admin_client(
    app: FastAPI, test_admin_user: User, jwt_token_factory
) -> AsyncGenerator[AsyncClient, None]:
    token = _token_for(jwt_token_factory, test_admin_user)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url=BASE_URL,
        headers={"Authorization": f"Bearer {token}"},
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def superadmin_client(
    app: FastAPI, test_superadmin_user: User, jwt_token_factory
) -> AsyncGenerator[AsyncClient, None]:
    token = _token_for(jwt_token_factory, test_superadmin_user)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url=BASE_URL,
        headers={"Authorization": f"Bearer {token}"},
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def service_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Client of the inference collaborator, authenticated by shared secret."""
    secret = BillingSettings().BILLING_SECRET.get_secret_value()
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url=BASE_URL,
        headers={BILLING_SECRET_HEADER: secret},
    ) as ac:
        yield ac
