import threading
from contextlib import contextmanager
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker, Session
from tracking_service.core_settings import get_settings
from tracking_service.domain.models import Base, BootstrapState, TrackingSequence, SINGLETON_ID
from shared.core import get_logger

logger = get_logger(__name__)

settings = get_settings()
DATABASE_URL = settings.database_url

def build_engine(url: str):
    connect_args = {}
    if url.startswith("sqlite"):
        # Sessions are handed across worker threads; writers are serialized by write_lock
        connect_args = {"check_same_thread": False, "timeout": 30}
    return create_engine(url, echo=False, future=True, pool_pre_ping=True, connect_args=connect_args)

engine = build_engine(DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

# Serializes write transactions within one process. Cross-process safety comes
# from the compare-and-set updates, row locks and unique constraints.
write_lock = threading.RLock()

def get_db() -> Session:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

@contextmanager
def atomic(db: Session):
    """Run a block as one write transaction: commit on success, roll back on any error."""
    with write_lock:
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise

def init_models(bind=None):
    bind = bind if bind is not None else engine
    Base.metadata.create_all(bind)
    with Session(bind) as db:
        if db.get(BootstrapState, SINGLETON_ID) is None:
            db.add(BootstrapState(id=SINGLETON_ID, consumed=False))
        if db.get(TrackingSequence, SINGLETON_ID) is None:
            db.add(TrackingSequence(id=SINGLETON_ID, value=0))
        try:
            db.commit()
        except IntegrityError:
            # Another instance seeded the singleton rows first
            db.rollback()
            logger.info("Singleton rows already present")
