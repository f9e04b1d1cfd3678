from contextlib import contextmanager

from sqlalchemy.engine import Engine
from sqlmodel import Session, create_engine

from speakr_common.config import PostgresConfig


def get_engine(config: PostgresConfig) -> Engine:
    return create_engine(config.url, pool_pre_ping=True)


def make_session_factory(engine: Engine):
    """Returns a callable producing SQLModel session context managers."""

    @contextmanager
    def _session_factory():
        with Session(engine) as session:
            yield session

    return _session_factory
