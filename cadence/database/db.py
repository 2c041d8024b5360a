"""SQLite engine, sessions and first-run seeding for the sequence store."""

import logging
import uuid
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session as OrmSession

from .models import Base, SequenceRecord, StepRecord

logger = logging.getLogger(__name__)

# ── paths ────────────────────────────────────────────────────────────────────

APP_SUPPORT_DIR = Path.home() / "Library" / "Application Support" / "Cadence"
DB_PATH = APP_SUPPORT_DIR / "cadence.db"

# ── first-run sample ──────────────────────────────────────────────────────

SAMPLE_SEQUENCE_NAME = "Pomodoro"
SAMPLE_STEPS = (("Work", 25 * 60), ("Break", 5 * 60))

_engine = None
_SessionFactory = None


def _make_engine(url: str):
    engine = create_engine(
        url,
        connect_args={"check_same_thread": False},
        echo=False,
    )

    # SQLite leaves FK enforcement off per connection unless asked
    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_conn, _record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def _get_engine():
    global _engine
    if _engine is None:
        APP_SUPPORT_DIR.mkdir(parents=True, exist_ok=True)
        _engine = _make_engine(f"sqlite:///{DB_PATH}")
    return _engine


def _get_session_factory():
    global _SessionFactory
    if _SessionFactory is None:
        _SessionFactory = sessionmaker(bind=_get_engine(), expire_on_commit=False)
    return _SessionFactory


# ── public API ────────────────────────────────────────────────────────────


def configure_engine(url: str) -> None:
    """Point the store at *url*, e.g. ``sqlite:///:memory:`` in tests."""
    global _engine, _SessionFactory
    _SessionFactory = None
    _engine = _make_engine(url)


def init_db(*, seed_sample: bool = True) -> None:
    """Create the tables; on an empty store, add the sample Pomodoro."""
    Base.metadata.create_all(_get_engine())
    if not seed_sample:
        return
    with get_session() as session:
        if session.query(SequenceRecord).count() > 0:
            return
        session.add(SequenceRecord(
            id=str(uuid.uuid4()),
            name=SAMPLE_SEQUENCE_NAME,
            repeats=True,
            steps=[
                StepRecord(
                    id=str(uuid.uuid4()),
                    position=position,
                    title=title,
                    duration_seconds=seconds,
                )
                for position, (title, seconds) in enumerate(SAMPLE_STEPS)
            ],
        ))
    logger.info("Seeded sample sequence %r", SAMPLE_SEQUENCE_NAME)


@contextmanager
def get_session():
    """Yield a SQLAlchemy session; commit on success, rollback on error."""
    factory = _get_session_factory()
    session: OrmSession = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
