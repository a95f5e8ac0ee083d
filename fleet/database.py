import enum
import logging

from sqlalchemy import Enum, create_engine, event, text
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import QueuePool
from fleet.config import settings

logger = logging.getLogger(__name__)


# ─── Engine ────────────────────────────────────────────────────────────────────
def _engine_options() -> dict:
    if settings.is_sqlite:
        # SQLite connections are shared across FastAPI's threadpool
        return {"connect_args": {"check_same_thread": False}, "echo": settings.DATABASE_ECHO}
    return {
        "poolclass":     QueuePool,
        "pool_size":     settings.DATABASE_POOL_SIZE,
        "max_overflow":  settings.DATABASE_MAX_OVERFLOW,
        "pool_timeout":  settings.DATABASE_POOL_TIMEOUT,
        "pool_pre_ping": True,          # Detect stale connections before using them
        "echo":          settings.DATABASE_ECHO,
    }


def enable_sqlite_write_lock(target) -> None:
    """
    Make every SQLite transaction start with BEGIN IMMEDIATE.

    pysqlite defers BEGIN until the first write, so two sessions can both run
    a check-then-insert before either holds the write lock. Taking the lock
    up front serializes them the way SELECT ... FOR UPDATE does on PostgreSQL.
    """
    @event.listens_for(target, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(target, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def _is_file_sqlite(url: str) -> bool:
    return url.startswith("sqlite") and ":memory:" not in url and url.rstrip("/") != "sqlite:"


engine = create_engine(settings.DATABASE_URL, **_engine_options())
if _is_file_sqlite(settings.DATABASE_URL):
    enable_sqlite_write_lock(engine)


# ─── Session Factory ───────────────────────────────────────────────────────────
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,      # Avoid DetachedInstanceError after commit
)


# ─── Base Model ────────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.
    All models in fleet/models/ should inherit from this class.
    """
    pass


def value_enum(enum_cls: type[enum.Enum], name: str) -> Enum:
    """Enum column type that persists member values ("active") instead of names ("ACTIVE")."""
    return Enum(enum_cls, name=name, values_callable=lambda members: [m.value for m in members])


# ─── Dependency Injection ──────────────────────────────────────────────────────
def get_db():
    """
    FastAPI dependency that provides a database session per request.
    Rolls back on any exception and always closes the session.

    Usage:
        @router.get("/items")
        def get_items(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


# ─── Schema bootstrap ──────────────────────────────────────────────────────────
def init_db() -> None:
    """Create missing tables. Used at startup for local and SQLite deployments."""
    import fleet.models  # noqa: F401 (registers models on Base.metadata)
    Base.metadata.create_all(bind=engine)


# ─── Health Check ──────────────────────────────────────────────────────────────
def check_db_connection() -> bool:
    """Verify database is reachable. Used at startup."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False
