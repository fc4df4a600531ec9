# archdoc/db_connection.py

import os
from typing import Callable

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from archdoc.entities import Base

load_dotenv()


class DBConnection:
    def __init__(self, database_url: str | None = None) -> None:
        # ---- env config ----
        self.DATABASE_URL = database_url or os.getenv("DATABASE_URL", "sqlite:///architecture.db")
        self.MAX_MERGE_RETRIES = int(os.getenv("ARCH_MERGE_MAX_RETRIES", "5"))
        self.IS_SQLITE = self.DATABASE_URL.startswith("sqlite")
        self._engine = None

    @property
    def engine(self):
        if self._engine is None:
            connect_args = {"check_same_thread": False} if self.IS_SQLITE else {}
            self._engine = create_engine(
                self.DATABASE_URL,
                future=True,
                pool_pre_ping=True,
                connect_args=connect_args,
            )
        return self._engine

    # -------- SQLAlchemy Session factory --------
    def build_db_session_factory(self) -> Callable[[], Session]:
        if not getattr(self, "_sessionmaker", None):
            self._sessionmaker = sessionmaker(
                bind=self.engine,
                autoflush=False,
                autocommit=False,
                expire_on_commit=False,
                future=True,
            )

        def _factory() -> Session:
            return self._sessionmaker()

        return _factory

    def create_schema(self) -> None:
        Base.metadata.create_all(self.engine)

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._sessionmaker = None
