import uuid
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rental_repairs import models  # noqa: F401
from rental_repairs.core.clock import FixedClock
from rental_repairs.database import get_db
from rental_repairs.db.base import Base
from rental_repairs.dependencies import get_clock, get_notification_sink
from rental_repairs.domain.submission_policy import RateLimitConfiguration
from rental_repairs.main import app
from rental_repairs.services.notification_service import InMemoryNotificationSink
from rental_repairs.services.scheduling_service import SchedulingService
from rental_repairs.services.tenant_request_service import TenantRequestService
from rental_repairs.services.worker_service import WorkerService

TEST_DATABASE_URL = "sqlite://"

# Monday morning; TODAY is the calendar day the clock reports
NOW = datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)
TODAY = NOW.date()

PROPERTY_ID = uuid.UUID("11111111-1111-1111-1111-111111111111")
PROPERTY_CODE = "SUNSET-01"


@pytest.fixture
def engine():
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def sink():
    return InMemoryNotificationSink()


@pytest.fixture
def rate_limits():
    return RateLimitConfiguration()


@pytest.fixture
def tenant_service(db, clock, sink, rate_limits):
    return TenantRequestService(db, clock, sink, rate_limits)


@pytest.fixture
def scheduling_service(db, clock, sink):
    return SchedulingService(db, clock, sink)


@pytest.fixture
def worker_service(db, clock, sink):
    return WorkerService(db, clock, sink)


@pytest.fixture
def client(db, clock, sink):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_notification_sink] = lambda: sink
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def submitted_request(tenant_service):
    """Factory: a Submitted request for a fresh tenant in SUNSET-01."""

    def _make(unit_number="101", title="Leaking pipe under kitchen sink", urgency="Normal", description=""):
        outcome = tenant_service.create_request(
            tenant_id=uuid.uuid4(),
            property_id=PROPERTY_ID,
            property_code=PROPERTY_CODE,
            unit_number=unit_number,
            title=title,
            description=description,
            urgency=urgency,
            submit=True,
        )
        assert outcome.admitted
        return outcome.request

    return _make
