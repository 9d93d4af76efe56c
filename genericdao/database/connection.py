"""
Database Connection Management (SQLAlchemy 2.0+)

- Singleton lifecycle: dispose() resets the singleton instance.
- Configuration is read from DB_CONFIG unless overridden.
- SQLite URLs get a StaticPool so an in-memory database survives across sessions.

Usage:
    engine = DatabaseEngine()
    engine.initialize()
    with engine.get_session() as session:
        dao = GeneralDAO(session)
        ...
    engine.dispose()
"""

import logging
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any, Optional

from sqlalchemy import Engine, create_engine, text
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from genericdao.common.config import DB_CONFIG

logger = logging.getLogger(__name__)


class DatabaseEngine:
    """
    Database Engine Manager (Singleton Pattern)

    Features:
        - Connection pooling with configurable limits
        - Automatic singleton reset on disposal (needed by tests)
        - Context manager for unit-of-work sessions
    """

    _instance: Optional["DatabaseEngine"] = None
    _initialized: bool = False

    def __new__(cls) -> "DatabaseEngine":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if self._initialized:
            return

        self.engine: Engine | None = None
        self.session_factory: sessionmaker | None = None
        self._initialized = True

    def initialize(
        self, db_config: dict[str, Any] | None = None, echo: bool | None = None, **kwargs
    ) -> None:
        """
        Create the engine and the session factory.

        Args:
            db_config: Database configuration. Defaults to DB_CONFIG.
            echo: Enable SQL logging. Defaults to the configured value.
            **kwargs: Override pool settings (pool_size, max_overflow, ...)
        """
        if self.engine is not None:
            logger.warning("Engine already initialized, skipping re-initialization")
            return

        config = {**DB_CONFIG, **(db_config or {})}
        if not config.get("url"):
            raise ValueError("Missing DB config key: url")

        url = config["url"]
        echo = config.get("echo", False) if echo is None else echo

        if url.startswith("sqlite"):
            engine_kwargs: dict[str, Any] = {
                "poolclass": StaticPool,
                "connect_args": {"check_same_thread": False},
            }
        else:
            # Priority: kwargs > DB_CONFIG
            engine_kwargs = {
                "pool_size": kwargs.get("pool_size", config["pool_size"]),
                "max_overflow": kwargs.get("max_overflow", config["max_overflow"]),
                "pool_timeout": kwargs.get("pool_timeout", config["pool_timeout"]),
                "pool_recycle": kwargs.get("pool_recycle", config["pool_recycle"]),
                "pool_pre_ping": True,
            }
            logger.info(
                f"Pool Config: size={engine_kwargs['pool_size']}, "
                f"overflow={engine_kwargs['max_overflow']}, recycle={engine_kwargs['pool_recycle']}"
            )

        logger.info(f"Initializing Engine: {url.split('@')[-1]}")

        try:
            self.engine = create_engine(url, echo=echo, **engine_kwargs)

            # autoflush keeps pending changes visible to searches in the same unit-of-work
            self.session_factory = sessionmaker(
                self.engine,
                class_=Session,
                expire_on_commit=False,
                autoflush=True,
            )

            self.health_check()
            logger.info("Engine initialized successfully")

        except Exception as e:
            logger.error(f"Failed to initialize Engine: {e}")
            self.dispose()
            raise RuntimeError(f"Database initialization failed: {e}") from e

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """
        Transactional session context manager (one unit-of-work).

        Usage:
            with engine.get_session() as session:
                ...
                # commit on exit, rollback on error
        """
        if self.session_factory is None:
            raise RuntimeError("Engine not initialized. Call engine.initialize() first.")

        session: Session = self.session_factory()

        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"Session transaction rolled back: {e}")
            raise
        finally:
            session.close()

    def health_check(self) -> bool:
        """Verify database connectivity."""
        if self.engine is None:
            raise RuntimeError("Engine not initialized")

        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            raise

    def dispose(self) -> None:
        """Dispose the engine and reset the singleton instance."""
        if self.engine:
            logger.info("Disposing Engine...")
            self.engine.dispose()
            self.engine = None
            self.session_factory = None

        DatabaseEngine._instance = None
        self._initialized = False
        logger.debug("DatabaseEngine singleton reset")


def get_db_engine() -> DatabaseEngine:
    return DatabaseEngine()
