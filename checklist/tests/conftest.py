import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
import os
from datetime import timedelta
from typing import Generator, Any, List

# Test settings must be in the environment before checklist.core.settings is imported.
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["SECRET_KEY"] = "testsecretkey"
os.environ["MAIL_SUPPRESS_SEND"] = "true"
os.environ["APP_URL"] = "http://testserver"

# Populate Base.metadata before create_all.
import checklist.models
from checklist.models.base import Base

from checklist.core.settings import settings as app_settings
from checklist.main import app

engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# pysqlite needs explicit BEGIN for SAVEPOINT-based test isolation.
@event.listens_for(engine, "connect")
def _sqlite_connect(dbapi_connection, connection_record):
    dbapi_connection.isolation_level = None

@event.listens_for(engine, "begin")
def _sqlite_begin(conn):
    conn.exec_driver_sql("BEGIN")

TestingSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    join_transaction_mode="create_savepoint",
)

from checklist.dependencies import get_db
from checklist.services.email import get_email_gateway
from checklist.crud.user import create_user
from checklist.crud.team import create_team, join_team
from checklist.core import security


class FakeEmailGateway:
    """Records messages instead of sending them."""

    def __init__(self):
        self.sent: List[dict] = []
        self.fail_for: set = set()

    async def send(self, to: str, subject: str, html: str) -> None:
        if to in self.fail_for:
            raise ConnectionError(f"SMTP refused {to}")
        self.sent.append({"to": to, "subject": subject, "html": html})


@pytest.fixture(scope="session", autouse=True)
def create_test_tables_session_scope():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Session bound to an outer transaction that is rolled back after the test.
    Commits inside CRUD code only release SAVEPOINTs.
    """
    connection = engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection)

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture(scope="function")
def gateway() -> FakeEmailGateway:
    return FakeEmailGateway()


@pytest.fixture(scope="function")
def client(db: Session, gateway: FakeEmailGateway) -> Generator[TestClient, None, None]:
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_email_gateway] = lambda: gateway
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def make_user(db: Session, name: str, email: str, password: str = "password123", **flags) -> Any:
    return create_user(db, {"name": name, "email": email, "password": password, **flags})


def auth_headers(user: Any) -> dict:
    token, _ = security.create_access_token(
        data={"sub": user.email, "user_id": user.id},
        expires_delta=timedelta(minutes=app_settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
def test_user(db: Session) -> Any:
    return make_user(db, "Alice", "alice@example.com")


@pytest.fixture(scope="function")
def other_user(db: Session) -> Any:
    return make_user(db, "Bob", "bob@example.com")


@pytest.fixture(scope="function")
def third_user(db: Session) -> Any:
    return make_user(db, "Carol", "carol@example.com")


@pytest.fixture(scope="function")
def team(db: Session, test_user: Any) -> Any:
    """Команда, где test_user — admin."""
    return create_team(db, {"name": "Acme", "password": "secret"}, test_user.id)


@pytest.fixture(scope="function")
def team_with_member(db: Session, team: Any, other_user: Any) -> Any:
    join_team(db, team.id, other_user.id, "secret")
    return team


@pytest.fixture(scope="function")
def user_headers(test_user: Any) -> dict:
    return auth_headers(test_user)


@pytest.fixture(scope="function")
def other_headers(other_user: Any) -> dict:
    return auth_headers(other_user)


@pytest.fixture(scope="function")
def user_factory(db: Session):
    def _make(name: str, email: str, password: str = "password123", **flags):
        return make_user(db, name, email, password, **flags)
    return _make


@pytest.fixture(scope="function")
def headers_for():
    return auth_headers
