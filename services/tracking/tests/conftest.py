import os
import tempfile

# Settings are read once and cached, so the environment must be in place
# before anything from tracking_service is imported.
_DB_DIR = tempfile.mkdtemp(prefix="tracking-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'tracking.db')}"
os.environ["ADMIN_TOKEN"] = "test-admin-token"
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["ENABLE_DEV_TOKENS"] = "true"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from tracking_service.domain.models import Base
from tracking_service.infrastructure.db import engine, SessionLocal, init_models
from tracking_service.application.identity import CallerContext
from tracking_service.application.service import TrackingService

ADMIN_TOKEN = "test-admin-token"

class FakeClock:
    def __init__(self, start: int = 1_000):
        self.value = start

    def now_ns(self) -> int:
        self.value += 1
        return self.value

@pytest.fixture(autouse=True)
def fresh_database():
    Base.metadata.drop_all(engine)
    init_models()
    yield

@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()

@pytest.fixture
def clock():
    return FakeClock()

@pytest.fixture
def service(db, clock):
    return TrackingService(db, clock=clock)

@pytest.fixture
def admin(service):
    caller = CallerContext("admin-alice")
    service.set_initial_admin(caller, ADMIN_TOKEN, ADMIN_TOKEN)
    return caller

@pytest.fixture
def guest():
    return CallerContext("guest-bob")

@pytest.fixture
def anonymous():
    return CallerContext.anonymous()
