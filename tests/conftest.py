import pytest
import os
from datetime import date, datetime, timezone
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["MOCK_EMAIL"] = "true"

from leavedesk.database import Base, get_db
from leavedesk.main import app
from leavedesk.models.leave_request import DurationKind, LeaveStatus
from leavedesk.models.leave_type import LeaveType
from leavedesk.models.member import Member, MemberRole
from leavedesk.schemas.leave import LeaveRequestCreate, LeaveRequestRecord
from leavedesk.services.directory import SqlDirectory
from leavedesk.services.leave_lifecycle import LeaveLifecycleService
from leavedesk.services.store import SqlLeaveStore
from fastapi.testclient import TestClient

# SQLite in-memory database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# pysqlite defers BEGIN on its own; emit it explicitly so SAVEPOINT/ROLLBACK nest inside the per-test transaction
@event.listens_for(engine, "connect")
def _disable_pysqlite_transactions(dbapi_connection, connection_record):
    dbapi_connection.isolation_level = None

@event.listens_for(engine, "begin")
def _emit_begin(conn):
    conn.exec_driver_sql("BEGIN")

# Commits inside the stores release a savepoint; the outer transaction is rolled back per test
TestingSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, bind=engine, join_transaction_mode="create_savepoint"
)

@pytest.fixture(scope="session", autouse=True)
def setup_database():
    """Create tables once for the whole test session."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture
def anyio_backend():
    return "asyncio"

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
def members(db_session):
    """A small directory: HR, admin, two managers and two employees."""
    rows = [
        Member(id="hr1", name="Hannah Reyes", email="hannah@example.com", role_title="HR Manager", role=MemberRole.HR),
        Member(id="adm1", name="Sam Okafor", email="sam@example.com", role_title="System Administrator", role=MemberRole.ADMIN),
        Member(id="mgr1", name="Tom Becker", email="tom@example.com", role_title="Team Manager", role=MemberRole.MANAGER),
        Member(id="mgr2", name="Priya Nair", email="priya@example.com", role_title="Project manager", role=MemberRole.EMPLOYEE),
        Member(id="emp1", name="Eva Lind", email="eva@example.com", role_title="Software Engineer", role=MemberRole.EMPLOYEE),
        Member(id="emp2", name="Leo Park", email="leo@example.com", role_title="Designer", role=MemberRole.EMPLOYEE),
    ]
    db_session.add_all(rows)
    db_session.commit()
    return {m.id: m for m in rows}

@pytest.fixture(scope="function")
def leave_types(db_session):
    rows = [
        LeaveType(name="Annual Leave", annual_allowance_days=20, description="Paid vacation", is_active=True),
        LeaveType(name="Sick Leave", annual_allowance_days=10, description="Illness", is_active=True),
        LeaveType(name="Sabbatical", annual_allowance_days=5, description="Retired policy", is_active=False),
    ]
    db_session.add_all(rows)
    db_session.commit()
    return {t.name: t for t in rows}


class RecordingNotifier:
    """Notifier fake that keeps what it was asked to deliver."""

    def __init__(self, fail_notify=False, fail_email=False):
        self.fail_notify = fail_notify
        self.fail_email = fail_email
        self.notified = []
        self.emails = []

    async def notify(self, recipient_id, message, title="Leave Update", type="info"):
        if self.fail_notify:
            raise ConnectionError("notification backend unavailable")
        self.notified.append((recipient_id, message))

    async def send_structured_email(self, payload):
        if self.fail_email:
            raise ConnectionError("smtp unavailable")
        self.emails.append(payload)

    def recipients(self):
        return [r for r, _ in self.notified]


@pytest.fixture(scope="function")
def notifier():
    return RecordingNotifier()

@pytest.fixture(scope="function")
def service(db_session, members, leave_types, notifier):
    return LeaveLifecycleService(
        store=SqlLeaveStore(db_session),
        directory=SqlDirectory(db_session),
        notifier=notifier,
    )

@pytest.fixture
def leave_payload():
    """Builder for submission payloads with sensible defaults."""
    def _payload(**overrides):
        data = {
            "leave_type_name": "Annual Leave",
            "start_date": date(2024, 6, 10),
            "end_date": date(2024, 6, 14),
            "reason": "Family trip",
            "approver_id": "mgr1",
        }
        data.update(overrides)
        return LeaveRequestCreate(**data)
    return _payload

@pytest.fixture
def make_record():
    """Builder for in-memory leave records, for tests that bypass the store."""
    def _record(**overrides):
        data = {
            "id": "req-1",
            "requester_id": "emp1",
            "requester_name": "Eva Lind",
            "leave_type_name": "Annual Leave",
            "start_date": date(2024, 6, 10),
            "end_date": date(2024, 6, 14),
            "duration_kind": DurationKind.FULL_DAY,
            "reason": "Family trip",
            "status": LeaveStatus.PENDING_MANAGER_APPROVAL,
            "approver_id": "mgr1",
            "created_at": datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc),
        }
        data.update(overrides)
        return LeaveRequestRecord(**data)
    return _record

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

@pytest.fixture
def as_actor():
    def _headers(member_id):
        return {"X-Actor-Id": member_id}
    return _headers
