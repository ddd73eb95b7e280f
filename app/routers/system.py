# app/routers/system.py
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import get_settings, Settings
from app.core.security import ActiveSession, SessionStore, get_session_store, require_session
from app.db import get_db

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health", tags=["System"], summary="Health check",
            responses={200: {"description": "Service healthy"}})
def health(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError:
        logger.exception("health_db_unreachable")
        database = "unreachable"
    finally:
        db.rollback()
    return {"status": "ok", "database": database}


@router.get("/info", tags=["System"], summary="Informações da aplicação",
            status_code=status.HTTP_200_OK)
def info(
    settings: Settings = Depends(get_settings),
    session: ActiveSession = Depends(require_session),
    sessions: SessionStore = Depends(get_session_store),
):
    purged = sessions.purge_expired()
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "backend": "sqlite" if settings.is_sqlite else "mysql",
        "user": session.identity,
        "session_expires_at": session.expires_at.isoformat(),
        "expired_sessions_purged": purged,
        "archive_retention_years": settings.ARCHIVE_RETENTION_YEARS,
    }
