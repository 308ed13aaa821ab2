import os

# Settings are read when app.core.database is imported, so the environment
# has to be in place before any app import.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("FIREBASE_PROJECT_ID", "estates-test")
os.environ.setdefault("STORAGE_PROVIDER", "gcs")
os.environ.setdefault("GCS_BUCKET_NAME", "estates-test-bucket")

from dataclasses import dataclass, field
from typing import AsyncGenerator
from uuid import UUID

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.dialects.sqlite.base import SQLiteTypeCompiler
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Compile JSONB columns as JSON on SQLite
original_process = SQLiteTypeCompiler.process


def patched_process(self, type_, **kw):
    if isinstance(type_, JSONB):
        return self.process(JSON(), **kw)
    return original_process(self, type_, **kw)


SQLiteTypeCompiler.process = patched_process  # type: ignore[method-assign]

import app.models  # noqa: E402,F401
from app.core.database import Base, get_db  # noqa: E402
from app.core.permissions import UserRole  # noqa: E402
from app.core.security import AuthenticatedUser, get_current_user  # noqa: E402
from app.main import app  # noqa: E402
from app.models.destination import Destination  # noqa: E402
from app.models.org import Organization, OrgMembership  # noqa: E402
from app.models.property import Property  # noqa: E402
from app.models.user import User  # noqa: E402
from app.services.storage import StorageProviderInterface, StorageService, get_storage_service  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite://"


class InMemoryStorageProvider(StorageProviderInterface):
    """Keeps uploaded objects in a dict."""

    def __init__(self):
        self.objects: dict[str, bytes] = {}

    async def upload_object(self, object_path: str, content: bytes, mime_type: str) -> None:
        self.objects[object_path] = content

    async def generate_presigned_download_url(self, object_path: str, ttl_seconds: int) -> str:
        return f"https://storage.test/{object_path}?ttl={ttl_seconds}"

    async def delete_object(self, object_path: str) -> bool:
        return self.objects.pop(object_path, None) is not None


@dataclass
class Seed:
    org_id: UUID
    other_org_id: UUID
    users: dict[str, AuthenticatedUser] = field(default_factory=dict)


class Auth:
    """Which seeded user the overridden auth dependency returns."""

    def __init__(self, seed: Seed):
        self.seed = seed
        self.user = seed.users["admin"]

    def login(self, name: str) -> AuthenticatedUser:
        self.user = self.seed.users[name]
        return self.user


@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session


async def _add_member(session: AsyncSession, org_id: UUID, name: str, role: UserRole) -> AuthenticatedUser:
    user = User(firebase_uid=f"uid-{name}", email=f"{name}@estates.test", full_name=name.title())
    session.add(user)
    await session.flush()
    session.add(OrgMembership(org_id=org_id, user_id=user.id, role=role))

    authenticated = AuthenticatedUser(uid=user.firebase_uid, email=user.email, email_verified=True)
    authenticated.db_user_id = user.id
    authenticated.org_id = org_id
    authenticated.org_role = role.value
    return authenticated


@pytest_asyncio.fixture
async def seed(db_session: AsyncSession) -> Seed:
    org = Organization(name="Riviera Estates", slug="riviera-estates")
    other = Organization(name="Alpine Chalets", slug="alpine-chalets")
    db_session.add_all([org, other])
    await db_session.flush()

    seed = Seed(org_id=org.id, other_org_id=other.id)
    for role in UserRole:
        seed.users[role.value] = await _add_member(db_session, org.id, role.value, role)
    seed.users["outsider"] = await _add_member(db_session, other.id, "outsider", UserRole.ADMIN)

    loner = AuthenticatedUser(uid="uid-loner", email="loner@estates.test")
    seed.users["loner"] = loner

    await db_session.commit()
    return seed


@pytest.fixture
def auth(seed: Seed) -> Auth:
    return Auth(seed)


@pytest.fixture
def storage_provider() -> InMemoryStorageProvider:
    return InMemoryStorageProvider()


@pytest_asyncio.fixture(name="client")
async def client_fixture(session_maker, auth: Auth, storage_provider) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with the database, auth and storage dependencies overridden."""

    async def get_db_override() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = get_db_override
    app.dependency_overrides[get_current_user] = lambda: auth.user
    app.dependency_overrides[get_storage_service] = lambda: StorageService(storage_provider)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as client:
        yield client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def destination(db_session: AsyncSession, seed: Seed) -> Destination:
    destination = Destination(org_id=seed.org_id, name="Saint-Tropez", country="France", region="Var")
    db_session.add(destination)
    await db_session.commit()
    return destination


@pytest_asyncio.fixture
async def villa(db_session: AsyncSession, seed: Seed, destination: Destination) -> Property:
    prop = Property(
        org_id=seed.org_id,
        destination_id=destination.id,
        name="Villa Azur",
        city="Ramatuelle",
        number_of_rooms=5,
        internal_comment="Owner prefers email",
    )
    db_session.add(prop)
    await db_session.commit()
    return prop


@pytest_asyncio.fixture
async def foreign_villa(db_session: AsyncSession, seed: Seed) -> Property:
    prop = Property(org_id=seed.other_org_id, name="Chalet Neige", city="Megeve")
    db_session.add(prop)
    await db_session.commit()
    return prop


@pytest_asyncio.fixture
async def foreign_destination(db_session: AsyncSession, seed: Seed) -> Destination:
    destination = Destination(org_id=seed.other_org_id, name="Megeve", country="France")
    db_session.add(destination)
    await db_session.commit()
    return destination
