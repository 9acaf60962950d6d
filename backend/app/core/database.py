from __future__ import annotations
import logging
from threading import Lock
from typing import Any, Dict, Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker, declarative_base

from app.core.config import DATABASE_URL, SQL_ECHO

logger = logging.getLogger(__name__)

# Single source of truth for Base
Base = declarative_base()


class Database:
    """
    Explicit store handle: one engine + session factory per process.

    Built by the app factory and shared through `app.state.database`.
    `connect()` is lazy and lock-guarded; a failed attempt is discarded so
    the next call retries. `dispose()` tears the pool down.
    """

    def __init__(self, url: str = DATABASE_URL, **engine_kwargs: Any):
        self.url = url
        self._engine_kwargs: Dict[str, Any] = {"future": True, "echo": SQL_ECHO, **engine_kwargs}
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None
        self._lock = Lock()

    @property
    def connected(self) -> bool:
        return self._engine is not None

    def connect(self) -> Engine:
        if self._engine is not None:
            return self._engine
        with self._lock:
            if self._engine is not None:
                return self._engine
            engine = create_engine(self.url, **self._engine_kwargs)
            try:
                with engine.connect() as conn:
                    conn.execute(text("SELECT 1"))
            except Exception:
                engine.dispose()
                logger.error("[db] connection to %s failed", engine.url.render_as_string(hide_password=True))
                raise
            self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
            self._engine = engine
            logger.info("[db] connected to %s (%s)", engine.url.render_as_string(hide_password=True), engine.name)
            return engine

    @property
    def engine(self) -> Engine:
        return self.connect()

    def session(self) -> Session:
        self.connect()
        return self._session_factory()

    def create_all(self) -> None:
        import app.models  # noqa: F401  (registers tables on Base)
        Base.metadata.create_all(bind=self.engine)

    def dispose(self) -> None:
        with self._lock:
            if self._engine is not None:
                self._engine.dispose()
                logger.info("[db] connection pool disposed")
            self._engine = None
            self._session_factory = None


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
