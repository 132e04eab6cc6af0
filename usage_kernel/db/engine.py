"""
Module: usage_kernel.db.engine
Responsibility: Own the process-wide SQLAlchemy engine and session factory
    that back the usage tables, and hand out transactional scopes.
Architecture position: Kernel > DB.  Imports db/base.py and, inside
    create_tables/drop_tables only, the models package.

Invariants enforced:
    - At most one engine is live; initializing again disposes the old one.
    - SQLite URLs share a single connection (StaticPool) so an in-memory
      database outlives individual sessions.

Failure modes:
    - RuntimeError from any accessor before init_engine_from_url().
"""

from contextlib import contextmanager
from typing import Any, Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from usage_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_factory: sessionmaker[Session] | None = None

_NOT_READY = "Usage database not initialized; call init_engine_from_url() first."


def _pool_options(database_url: str, pool_size: int, pool_recycle: int) -> dict[str, Any]:
    if database_url.startswith("sqlite"):
        return {
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }
    return {
        "poolclass": QueuePool,
        "pool_size": pool_size,
        "max_overflow": pool_size // 2,
        "pool_pre_ping": True,
        "pool_recycle": pool_recycle,
    }


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 20,
    pool_recycle: int = 1800,
) -> Engine:
    """Create the engine and session factory for ``database_url``.

    Sessions are created with ``expire_on_commit=False`` so report DTOs
    built from ORM rows stay readable after the scope commits.
    """
    global _engine, _factory

    reset_engine()
    _engine = create_engine(
        database_url,
        echo=echo,
        **_pool_options(database_url, pool_size, pool_recycle),
    )
    _factory = sessionmaker(bind=_engine, expire_on_commit=False)

    configure_logging()
    logger.info(
        "engine_initialized",
        extra={"dialect": _engine.dialect.name, "echo": echo},
    )
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError(_NOT_READY)
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    if _factory is None:
        raise RuntimeError(_NOT_READY)
    return _factory


def get_session() -> Session:
    """A new session from the shared factory."""
    return get_session_factory()()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    Commit on clean exit, roll back and re-raise on error, always close.

    Services only flush, so this is where their writes become durable:

        with session_scope() as session:
            SnapshotService(session, clock).recompute("log-1")
    """
    session = get_session()
    try:
        yield session
        session.commit()
        logger.debug("transaction_committed")
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables() -> None:
    """Create every usage table on the current engine."""
    from usage_kernel.db.base import Base
    import usage_kernel.models  # noqa: F401  registers tables on Base.metadata

    Base.metadata.create_all(get_engine())
    logger.info("tables_created", extra={"tables": sorted(Base.metadata.tables)})


def drop_tables() -> None:
    """Drop every usage table.  Test teardown only."""
    from usage_kernel.db.base import Base
    import usage_kernel.models  # noqa: F401

    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """Dispose the engine, if any, and forget the session factory."""
    global _engine, _factory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _factory = None
