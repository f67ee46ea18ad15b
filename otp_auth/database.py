import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from otp_auth.errors import ConfigError, StorageError

LOGGER = logging.getLogger(__name__)

Base = declarative_base()


def build_database_url(raw_url: str) -> str:
    if raw_url.startswith("postgresql://"):
        return raw_url.replace("postgresql://", "postgresql+psycopg://", 1)
    return raw_url


def _engine_options(url: str, timeout_seconds: int) -> dict:
    if url.startswith("sqlite"):
        options: dict = {
            "connect_args": {"check_same_thread": False, "timeout": timeout_seconds}
        }
        if url in {"sqlite://", "sqlite:///:memory:"}:
            # One shared connection, otherwise every checkout sees an empty database.
            options["poolclass"] = StaticPool
        return options
    options = {"pool_pre_ping": True, "pool_timeout": timeout_seconds}
    if url.startswith("postgresql"):
        options["connect_args"] = {
            "connect_timeout": timeout_seconds,
            "options": f"-c statement_timeout={timeout_seconds * 1000}",
        }
    return options


class Database:
    """Service-level persistence client.

    Every store in this package talks to the database through one of these.
    Access control belongs to the HTTP boundary, so nothing here filters by
    the calling user.
    """

    def __init__(self, url: str, timeout_seconds: int = 10) -> None:
        if not url:
            raise ConfigError("DATABASE_URL is not configured")
        self.url = build_database_url(url)
        self.engine: Engine = create_engine(
            self.url, **_engine_options(self.url, timeout_seconds)
        )
        self._session_factory = sessionmaker(
            bind=self.engine, autoflush=False, autocommit=False, expire_on_commit=False
        )

    def init_db(self) -> None:
        from otp_auth.models import otp as _otp  # noqa: F401
        from otp_auth.models import session as _session  # noqa: F401
        from otp_auth.models import user as _user  # noqa: F401

        try:
            Base.metadata.create_all(bind=self.engine)
        except SQLAlchemyError as exc:
            raise StorageError("Failed to initialise database schema") from exc

    def drop_all(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    def dispose(self) -> None:
        self.engine.dispose()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            LOGGER.debug("Rolled back database session: %s", exc)
            raise StorageError("Database operation failed") from exc
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
