import pytest
import os
from datetime import datetime, timedelta, timezone
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["STORAGE_BACKEND"] = "sql"
os.environ["BOOTSTRAP_ADMIN"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_ENABLED"] = "false"

from app.database import Base, get_db
from app.main import app
from app.models.user import User, UserRole
from app.services import auth as auth_service
from app.store import InMemoryRecordStore, USERS
from fastapi.testclient import TestClient

# SQLite in-memory database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PASSWORD = "Password123!"


class FrozenClock:
    """Deterministic clock for service tests."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture(scope="session", autouse=True)
def setup_database():
    """Create tables once for the whole test session."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture(scope="function")
def db_session():
    """Get a clean database session for each test function with rollback safety."""
    connection = engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection)

    yield session

    session.close()
    transaction.rollback()
    connection.close()

def _add_user(db_session, user_id, name, role, department=None, job_title=None):
    user = User(
        id=user_id,
        name=name,
        role=role.value,
        hashed_password=auth_service.get_password_hash(PASSWORD),
        department=department,
        job_title=job_title,
        created_at=datetime.now(timezone.utc),
    )
    db_session.add(user)
    db_session.commit()
    return user

@pytest.fixture(scope="function")
def hr_user(db_session):
    return _add_user(db_session, "hr01", "HR Manager", UserRole.HR, "Human Resources")

@pytest.fixture(scope="function")
def manager_user(db_session):
    return _add_user(db_session, "mgr01", "Mona Manager", UserRole.MANAGEMENT, "Engineering", "Team Lead")

@pytest.fixture(scope="function")
def other_manager(db_session):
    return _add_user(db_session, "mgr02", "Omar Manager", UserRole.MANAGEMENT, "Finance", "Team Lead")

@pytest.fixture(scope="function")
def employee_user(db_session):
    return _add_user(db_session, "emp01", "Eva Employee", UserRole.EMPLOYEE, "Engineering", "Developer")

@pytest.fixture(scope="function")
def other_employee(db_session):
    return _add_user(db_session, "emp02", "Ali Employee", UserRole.EMPLOYEE, "Finance", "Accountant")

@pytest.fixture(scope="function")
def get_token():
    """Helper fixture to create access tokens."""
    def _get_token(user):
        return auth_service.create_access_token(data={
            "sub": user.id,
            "role": user.role,
            "type": "access"
        })
    return _get_token

@pytest.fixture(scope="function")
def auth_headers(get_token):
    def _auth_headers(user):
        return {"Authorization": f"Bearer {get_token(user)}"}
    return _auth_headers

@pytest.fixture(scope="function")
def client(db_session):
    """Get a TestClient that uses the test database session via dependency override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()

# ---------------------------------------------------------------------------
# In-memory store fixtures for service-level tests
# ---------------------------------------------------------------------------
@pytest.fixture(scope="function")
def clock():
    return FrozenClock(datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc))

@pytest.fixture(scope="function")
def memory_store():
    store = InMemoryRecordStore()
    for user_id, name, role, department in [
        ("hr01", "HR Manager", UserRole.HR, "Human Resources"),
        ("mgr01", "Mona Manager", UserRole.MANAGEMENT, "Engineering"),
        ("mgr02", "Omar Manager", UserRole.MANAGEMENT, "Finance"),
        ("emp01", "Eva Employee", UserRole.EMPLOYEE, "Engineering"),
        ("emp02", "Ali Employee", UserRole.EMPLOYEE, "Finance"),
    ]:
        store.upsert(USERS, user_id, {
            "name": name,
            "role": role.value,
            "hashed_password": "not-used",
            "department": department,
            "job_title": None,
            "email": None,
            "created_at": datetime(2025, 1, 1, tzinfo=timezone.utc),
        })
    return store
