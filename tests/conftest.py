from datetime import date, timedelta
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.api.deps import get_audit_sink, get_codec
from app.cards.number_generator import generate
from app.cards.pan_codec import PanCodec
from app.core.principal import Principal
from app.core.security import create_access_token, hash_password
from app.db.session import build_engine, get_db
from app.main import app
from app.models.base import Base
from app.models.card import Card
from app.models.enums import CardStatus, UserRole
from app.models.user import User
from app.repositories.card import CardRepository
from app.repositories.user import UserRepository
from app.services.audit import AuditEvent, AuditSink

TEST_CARD_SECRET = "test-card-secret"


class RecordingAuditSink(AuditSink):
    """Keeps events in memory so tests can assert on them."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    def record(self, actor_id, action, entity_type, entity_id, details=None, ip_address=None):
        self.events.append(
            AuditEvent(
                actor_id=actor_id,
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                details=details,
                ip_address=ip_address,
            )
        )
        return True

    def actions(self):
        return [event.action for event in self.events]


@pytest.fixture
async def test_engine(tmp_path):
    """File-backed SQLite database, created fresh for every test."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'cards.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def audit_sink():
    return RecordingAuditSink()


@pytest.fixture
def codec():
    return PanCodec(TEST_CARD_SECRET)


async def _create_user(db_session, email, full_name, role=UserRole.USER):
    repo = UserRepository(db_session)
    return await repo.create(
        User(
            email=email,
            password_hash=hash_password("password123"),
            full_name=full_name,
            role=role,
        )
    )


@pytest.fixture
async def test_user(db_session: AsyncSession):
    """A regular user; password is ``password123``."""
    return await _create_user(db_session, "testuser@example.com", "Test User")


@pytest.fixture
async def other_user(db_session: AsyncSession):
    return await _create_user(db_session, "other@example.com", "Other User")


@pytest.fixture
async def admin_user(db_session: AsyncSession):
    return await _create_user(db_session, "admin@example.com", "Admin User", UserRole.ADMIN)


@pytest.fixture
def user_principal(test_user):
    return Principal.from_user(test_user)


@pytest.fixture
def other_principal(other_user):
    return Principal.from_user(other_user)


@pytest.fixture
def admin_principal(admin_user):
    return Principal.from_user(admin_user)


@pytest.fixture
def make_card(db_session: AsyncSession, codec: PanCodec):
    """Factory that stores a card directly, bypassing the card service."""

    async def _make_card(
        owner: User,
        balance: str = "0.00",
        status: CardStatus = CardStatus.ACTIVE,
        expiration_date: date | None = None,
    ) -> Card:
        card = Card(
            card_number=codec.encrypt(generate()),
            owner_id=owner.id,
            expiration_date=expiration_date or date.today() + timedelta(days=365),
            status=status,
            balance=Decimal(balance),
        )
        return await CardRepository(db_session).create(card)

    return _make_card


@pytest.fixture
async def auth_headers(test_user):
    """Provide authentication headers with valid JWT token."""
    token = create_access_token(user_id=test_user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def admin_headers(admin_user):
    token = create_access_token(user_id=admin_user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def client(db_session: AsyncSession, audit_sink: RecordingAuditSink, codec: PanCodec):
    """Provide test client with database, audit and codec overrides."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_audit_sink] = lambda: audit_sink
    app.dependency_overrides[get_codec] = lambda: codec

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
