import logging

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from tiendapos.core.config import settings
from tiendapos.core.errors import PersistenceError
from tiendapos.models.base import Base


logger = logging.getLogger(__name__)


def _engine_kwargs(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {"pool_pre_ping": True}
    kwargs = {"connect_args": {"check_same_thread": False}}
    # In-memory databases live in a single connection shared by every session
    if url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    return kwargs


engine = create_engine(settings.database_url, **_engine_kwargs(settings.database_url))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def commit_or_rollback(db: Session, action: str) -> None:
    """
    Commit the current unit of work. Store failures roll the whole unit back
    and surface as PersistenceError, so nothing is half-written.
    """
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Persistence failure while %s", action)
        raise PersistenceError(f"Error al guardar ({action})") from exc


def init_db() -> None:
    # Create tables in dev/test without running Alembic
    if settings.env in {"dev", "test"}:
        import tiendapos.models  # noqa: F401  register every table on Base.metadata

        Base.metadata.create_all(bind=engine)
        logger.info("Schema ensured with create_all (env=%s)", settings.env)
