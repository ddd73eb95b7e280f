# app/routers/auth.py
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.errors import Unauthorized
from app.core.security import (
    ActiveSession, LoginRateLimiter, SessionStore, bearer_token, get_rate_limiter,
    get_session_store, require_session,
)
from app.db import get_db
from app.schemas import ApiResponse, Credentials, LoginResult
from app.services.reports import snapshot_summary
from app.services.users import authenticate, normalize_login

router = APIRouter(prefix="/auth", tags=["Auth"])
logger = logging.getLogger(__name__)


def _result(db: Session, session: ActiveSession) -> LoginResult:
    return LoginResult(
        token=session.token,
        profile=session.profile,
        expires_at=session.expires_at,
        snapshot=snapshot_summary(db),
    )


@router.post("/login", response_model=ApiResponse[LoginResult], summary="Login")
def login(
    payload: Credentials,
    db: Session = Depends(get_db),
    sessions: SessionStore = Depends(get_session_store),
    limiter: LoginRateLimiter = Depends(get_rate_limiter),
):
    key = normalize_login(payload.login)
    if not limiter.check(key):
        raise Unauthorized("Muitas tentativas de login. Tente novamente em 1 minuto.")
    profile = authenticate(db, payload.login, payload.password)
    if profile is None:
        logger.info("login_failed", extra={"login": key})
        raise Unauthorized("Credenciais inválidas")
    limiter.reset(key)
    return ApiResponse.ok(_result(db, sessions.create(profile)))


@router.get("/session", response_model=ApiResponse[LoginResult], summary="Sessão atual")
def current_session(
    db: Session = Depends(get_db),
    session: ActiveSession = Depends(require_session),
):
    return ApiResponse.ok(_result(db, session))


@router.post("/logout", response_model=ApiResponse[bool], summary="Logout")
def logout(
    token: str | None = Depends(bearer_token),
    sessions: SessionStore = Depends(get_session_store),
):
    if token:
        sessions.revoke(token)
    return ApiResponse.ok(True)
