"""Database engine, session configuration and transaction helpers."""

from collections.abc import Generator, Iterator
from contextlib import contextmanager

from sqlalchemy import Update, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from drop_economy.config import settings
from drop_economy.core.economy.errors import EconomyError, InternalStoreError
from drop_economy.core.logging import get_logger

logger = get_logger(__name__)

_connect_args = (
    {"check_same_thread": False}  # required for SQLite
    if settings.DATABASE_URL.startswith("sqlite")
    else {}
)

engine = create_engine(
    settings.DATABASE_URL,
    connect_args=_connect_args,
    echo=settings.DEBUG,
)

SessionLocal = sessionmaker(bind=engine, autoflush=False)


def get_db() -> Generator[Session, None, None]:
    """Yield a database session and ensure it is closed after use.

    Usage as a FastAPI dependency::

        @router.post("/trades")
        def propose(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """One all-or-nothing transaction.

    Commits when the block finishes, rolls back on any exception.
    Driver/ORM failures surface as InternalStoreError; economy errors
    propagate unchanged.
    """
    try:
        yield db
        db.commit()
    except EconomyError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Transaction rolled back after store failure")
        raise InternalStoreError() from e
    except Exception:
        db.rollback()
        raise


def conditional_update(db: Session, stmt: Update) -> int:
    """Execute a guarded UPDATE and return how many rows it touched.

    The WHERE clause carries the expected prior state; zero rows means the
    precondition no longer held. Loaded objects are expired so later reads
    in the same transaction see the new row values.
    """
    result = db.execute(stmt.execution_options(synchronize_session=False))
    db.expire_all()
    return result.rowcount
