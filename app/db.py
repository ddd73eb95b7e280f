import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker, DeclarativeBase, Session
from sqlalchemy.pool import StaticPool

from app.core.config import get_settings
from app.core.errors import ArchiveError, ConstraintViolation, StorageFailure

logger = logging.getLogger(__name__)


def build_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url.rstrip("/") == "sqlite:":
            kwargs["poolclass"] = StaticPool
        eng = create_engine(url, echo=False, **kwargs)

        @event.listens_for(eng, "connect")
        def _sqlite_pragmas(dbapi_conn, _record):
            cur = dbapi_conn.cursor()
            cur.execute("PRAGMA foreign_keys=ON")
            cur.close()

        return eng
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_recycle=3600,
        echo=False,
    )


settings = get_settings()

engine = build_engine(settings.sqlalchemy_url)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

class Base(DeclarativeBase):
    pass

# dependencia para FastAPI
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """Unidade de trabalho: commit ao final ou rollback de tudo.

    IntegrityError vira ConstraintViolation; qualquer outro erro do
    SQLAlchemy vira StorageFailure.
    """
    try:
        yield db
        db.commit()
    except ArchiveError:
        db.rollback()
        raise
    except IntegrityError as exc:
        db.rollback()
        logger.warning("integrity_error", extra={"detail": str(exc.orig)})
        raise ConstraintViolation(f"Violação de restrição: {exc.orig}") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("storage_failure")
        raise StorageFailure(f"Falha no banco de dados: {exc}") from exc
    except Exception:
        db.rollback()
        raise


@contextmanager
def snapshot(db: Session) -> Iterator[Session]:
    """Leitura em uma única transação, sempre descartada ao sair.

    A consistência entre as consultas do bloco é garantida no MySQL/InnoDB
    (REPEATABLE READ). No SQLite o pysqlite só abre transação em escritas,
    então cada SELECT vê o último commit. A sessão não pode ter alterações
    pendentes: o rollback as descartaria.
    """
    if db.new or db.dirty or db.deleted:
        raise StorageFailure("Leitura consistente pedida com alterações pendentes na sessão")
    if db.in_transaction():
        db.rollback()
    try:
        yield db
    except SQLAlchemyError as exc:
        logger.exception("storage_failure")
        raise StorageFailure(f"Falha no banco de dados: {exc}") from exc
    finally:
        db.rollback()
