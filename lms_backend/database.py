from collections.abc import Iterator

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool


Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute('PRAGMA foreign_keys=ON')
    cursor.close()


class Database:
    """Owns the engine and session factory for one application instance."""

    def __init__(self, url: str) -> None:
        self.url = url
        self.engine = self._build_engine(url)
        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self.engine,
        )

    @staticmethod
    def _build_engine(url: str) -> Engine:
        if not url.startswith('sqlite'):
            return create_engine(url, pool_pre_ping=True)

        engine_kwargs: dict = {'connect_args': {'check_same_thread': False}}
        if ':memory:' in url or url in {'sqlite://', 'sqlite:///'}:
            # every session must see the same in-memory database
            engine_kwargs['poolclass'] = StaticPool

        engine = create_engine(url, **engine_kwargs)
        event.listen(engine, 'connect', _enable_sqlite_foreign_keys)
        return engine

    def create_all(self) -> None:
        # models register themselves on Base when imported
        from lms_backend import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    def session(self) -> Session:
        return self.SessionLocal()

    def dispose(self) -> None:
        self.engine.dispose()


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
