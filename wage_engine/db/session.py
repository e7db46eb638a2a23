from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from wage_engine.core.config import Settings
from wage_engine.core.exceptions import DuplicateConstraintError, StorageUnavailable
from wage_engine.core.logging import get_logger

Base = declarative_base()


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, matching the timezone-less DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
logger = get_logger(__name__)

UNIQUE_VIOLATION = "23505"


def _enable_sqlite_write_locks(engine: Engine) -> None:
    """Make every SQLite transaction take the write lock up front.

    SQLite ignores ``FOR UPDATE``; ``BEGIN IMMEDIATE`` gives the same
    serialization for the decide/edit paths. pysqlite's own transaction
    handling has to be switched off for the explicit BEGIN to take effect.
    """

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def _is_unique_violation(exc: IntegrityError) -> bool:
    if getattr(exc.orig, "pgcode", None) == UNIQUE_VIOLATION:
        return True
    return "UNIQUE constraint failed" in str(exc.orig)


class Database:
    """Owns the engine and session factory. Callers open and close it explicitly."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self._engine: Engine | None = None
        self._sessionmaker: sessionmaker | None = None

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise StorageUnavailable("Database is not open")
        return self._engine

    def open(self) -> "Database":
        if self._engine is not None:
            return self
        url = make_url(self.settings.database_url)
        timeout_ms = self.settings.statement_timeout_ms
        connect_args: dict = {}
        if url.get_backend_name() == "sqlite":
            connect_args = {"check_same_thread": False, "timeout": timeout_ms / 1000}
        elif url.get_backend_name() == "postgresql":
            connect_args = {
                "connect_timeout": max(1, timeout_ms // 1000),
                "options": f"-c statement_timeout={timeout_ms}",
            }

        engine = create_engine(url, pool_pre_ping=self.settings.pool_pre_ping, connect_args=connect_args)
        if url.get_backend_name() == "sqlite":
            _enable_sqlite_write_locks(engine)

        self._engine = engine
        self._sessionmaker = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
        logger.info("database_opened", backend=url.get_backend_name())
        return self

    def close(self) -> None:
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._sessionmaker = None
        logger.info("database_closed")

    def __enter__(self) -> "Database":
        return self.open()

    def __exit__(self, *exc_info) -> None:
        self.close()

    def create_all(self) -> None:
        # Import registers every mapped class on Base.metadata.
        import wage_engine.models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        import wage_engine.models  # noqa: F401

        Base.metadata.drop_all(bind=self.engine)

    def ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except (DBAPIError, StorageUnavailable):
            return False
        return True

    def new_session(self) -> Session:
        if self._sessionmaker is None:
            raise StorageUnavailable("Database is not open")
        return self._sessionmaker()

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Read-only unit of work. Nothing is committed."""
        db = self.new_session()
        try:
            yield db
        except OperationalError as exc:
            db.rollback()
            raise StorageUnavailable(f"Storage read failed: {exc.orig}") from exc
        finally:
            db.close()

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """All-or-nothing unit of work.

        Any failure rolls the whole transaction back before the error reaches
        the caller. Driver errors are translated to the engine's error types.
        """
        db = self.new_session()
        try:
            yield db
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            if _is_unique_violation(exc):
                constraint = getattr(getattr(exc.orig, "diag", None), "constraint_name", None)
                raise DuplicateConstraintError(f"Duplicate value: {exc.orig}", constraint=constraint) from exc
            raise
        except OperationalError as exc:
            db.rollback()
            logger.warning("transaction_rolled_back", reason="storage_unavailable", error=str(exc.orig))
            raise StorageUnavailable(f"Storage operation failed: {exc.orig}") from exc
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
