from collections.abc import Callable, Generator
from decimal import Decimal
from typing import Any

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from resource_ledger import config, models, resources, schemas, security
from resource_ledger.app import create_app
from resource_ledger.config import Settings
from resource_ledger.constants import Role
from resource_ledger.database import Base, init_database, make_session_factory
from resource_ledger.dependencies import get_db

PASSWORD = "s3cret-pass"


@pytest.fixture(autouse=True)
def _isolated_environment(tmp_path, monkeypatch) -> Generator[None, None, None]:
    monkeypatch.setenv("LEDGER_DB", str(tmp_path / "default.sqlite3"))
    monkeypatch.setenv("LEDGER_SECRET", "test-secret")
    monkeypatch.delenv("LEDGER_DATABASE_URL", raising=False)
    config.get_settings.cache_clear()
    yield
    config.get_settings.cache_clear()


@pytest.fixture(name="settings")
def settings_fixture(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'ledger.sqlite3'}",
        secret_key="test-secret",
        log_level="warning",
        max_retries=3,
        retry_backoff=0.0,
    )


@pytest.fixture(name="db_engine")
def db_engine_fixture(settings: Settings) -> Generator[Any, None, None]:
    engine = init_database(settings)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(name="session_factory")
def session_factory_fixture(db_engine) -> sessionmaker[Session]:
    return make_session_factory(db_engine)


@pytest.fixture(name="db")
def db_fixture(session_factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    with session_factory() as session:
        yield session


@pytest.fixture(scope="session", name="password_hash")
def password_hash_fixture() -> str:
    return security.hash_password(PASSWORD)


@pytest.fixture(name="users")
def users_fixture(db: Session, password_hash: str) -> dict[Role, models.User]:
    created = {}
    for role in Role:
        user = models.User(
            username=f"{role.value}-user",
            full_name=f"{role.value.title()} User",
            hashed_password=password_hash,
            role=role,
        )
        db.add(user)
        created[role] = user
    db.commit()
    return created


@pytest.fixture(name="make_resource")
def make_resource_fixture(db: Session, users: dict[Role, models.User]) -> Callable[..., models.Resource]:
    def _make(name: str = "Training Budget", initial_balance: Any = "100", **extra: Any) -> models.Resource:
        payload = schemas.ResourceCreate(name=name, initial_balance=Decimal(str(initial_balance)), **extra)
        return resources.create_resource(db, payload, users[Role.HR])

    return _make


@pytest.fixture(name="client")
def client_fixture(settings: Settings, session_factory: sessionmaker[Session], users) -> Generator[TestClient, None, None]:
    app = create_app(settings)

    def get_db_override() -> Generator[Session, None, None]:
        with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = get_db_override

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture(name="auth_headers")
def auth_headers_fixture(settings: Settings, users: dict[Role, models.User]) -> Callable[[Role], dict[str, str]]:
    def _headers(role: Role) -> dict[str, str]:
        token = security.issue_session_token(users[role].id, settings.secret_key)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture(name="password")
def password_fixture() -> str:
    return PASSWORD
