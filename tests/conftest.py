import pytest
import os
from datetime import date
from types import SimpleNamespace
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["SETTLEMENT_RATE_LIMIT"] = "1000/minute"

from hr_ledger.database import Base, get_db
from hr_ledger.main import app
from fastapi.testclient import TestClient

# SQLite in-memory database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

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

@pytest.fixture(scope="function")
def workflow_group(db_session):
    """A two-step approval chain; managers only need the first step."""
    from hr_ledger.models.workflow_group import WorkflowGroup
    group = WorkflowGroup(
        name="Default",
        steps=[{"role": "MANAGER"}, {"role": "HR"}],
        title_rules=[{"job_title": "Manager", "max_level": 1}],
    )
    db_session.add(group)
    db_session.commit()
    return group

@pytest.fixture(scope="function")
def make_user(db_session, workflow_group):
    """Factory for persisted employees."""
    from hr_ledger.models.user import User
    counter = {"n": 0}

    def _make_user(name="Alice", annual_days=14.0, year=None, job_title="Engineer", gender="FEMALE"):
        counter["n"] += 1
        user = User(
            employee_id=f"E{counter['n']:03d}",
            name=name,
            department="Engineering",
            job_title=job_title,
            gender=gender,
            workflow_group_id=workflow_group.id,
            annual_quota={str(year or date.today().year): annual_days},
        )
        db_session.add(user)
        db_session.commit()
        return user
    return _make_user

@pytest.fixture
def leave():
    """Unsaved request-like objects for the pure engine functions."""
    counter = {"n": 0}

    def _leave(user_id="u1", type="ANNUAL", start="2024-03-04", end=None, status="APPROVED",
               partial=False, start_time=None, end_time=None, **extra):
        counter["n"] += 1
        fields = dict(
            id=f"r{counter['n']}",
            user_id=user_id,
            type=type,
            start_date=date.fromisoformat(start),
            end_date=date.fromisoformat(end or start),
            is_partial_day=partial,
            start_time=start_time,
            end_time=end_time,
            status=status,
            actual_start_date=None,
            actual_end_date=None,
            actual_start_time=None,
            actual_end_time=None,
            actual_duration=None,
            is_verified=False,
        )
        fields.update(extra)
        return SimpleNamespace(**fields)
    return _leave
