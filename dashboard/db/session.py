"""Database client: engine, session factory and scoped sessions.

A :class:`Database` is constructed once at process start-up, handed to the
components that talk to the store, and disposed at shutdown.
"""

from contextlib import contextmanager
from typing import Any, Dict, Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from dashboard.common.logger import get_logger
from dashboard.core.config import Settings

logger = get_logger(__name__)


def _sqlalchemy_url(raw_url: str) -> str:
    """Normalize the legacy ``postgres://`` scheme."""
    if raw_url.startswith("postgres://"):
        return raw_url.replace("postgres://", "postgresql://", 1)
    return raw_url


class Database:
    """Owns the SQLAlchemy engine and hands out short-lived sessions."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = sessionmaker(
            bind=engine, autocommit=False, autoflush=False, expire_on_commit=False
        )

    @classmethod
    def from_url(
        cls,
        database_url: str,
        *,
        pool_size: int = 5,
        max_overflow: int = 10,
        statement_timeout_ms: int = 0,
        echo: bool = False,
    ) -> "Database":
        url = _sqlalchemy_url(database_url)
        kwargs: Dict[str, Any] = {"echo": echo, "pool_pre_ping": True}

        if url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in url or url in ("sqlite://", "sqlite:///"):
                # One shared connection so every session sees the same in-memory DB
                kwargs["poolclass"] = StaticPool
        else:
            kwargs["pool_size"] = pool_size
            kwargs["max_overflow"] = max_overflow
            if statement_timeout_ms > 0 and url.startswith("postgresql"):
                kwargs["connect_args"] = {
                    "options": f"-c statement_timeout={statement_timeout_ms}"
                }

        engine = create_engine(url, **kwargs)

        if url.startswith("sqlite"):
            @event.listens_for(engine, "connect")
            def _enable_foreign_keys(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

        logger.info("Database engine created for %s", engine.url.render_as_string(hide_password=True))
        return cls(engine)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls.from_url(
            settings.database_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            statement_timeout_ms=settings.db_statement_timeout_ms,
        )

    def new_session(self) -> Session:
        return self._session_factory()

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Yield a session that is always closed, rolling back on error."""
        db = self._session_factory()
        try:
            yield db
        except BaseException:
            db.rollback()
            raise
        finally:
            db.close()

    def create_all(self) -> None:
        """Create all tables (development and tests; production uses Alembic)."""
        from dashboard.db.base import Base
        import dashboard.db.models  # noqa: F401  register mappers

        Base.metadata.create_all(self.engine)

    def dispose(self) -> None:
        logger.info("Disposing database engine")
        self.engine.dispose()

