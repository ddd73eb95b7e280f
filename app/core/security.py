# app/core/security.py
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache

import bcrypt
from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from limits import RateLimitItemPerSecond
from limits.storage import MemoryStorage
from limits.strategies import MovingWindowRateLimiter

from app.core.config import get_settings, Settings
from app.core.errors import Unauthorized
from app.schemas import UserProfile

bearer_scheme = HTTPBearer(auto_error=False)

SESSION_INVALID = "Sessão inválida. Faça login novamente."


# -------- senhas --------
def hash_password(password: str, rounds: int | None = None) -> str:
    rounds = rounds or get_settings().BCRYPT_ROUNDS
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # hash corrompido ou em formato desconhecido
        return False


# -------- sessões --------
@dataclass(frozen=True)
class ActiveSession:
    token: str
    profile: UserProfile
    issued_at: datetime
    expires_at: datetime

    @property
    def identity(self) -> str:
        return self.profile.login


class SessionStore:
    """Mapa token -> sessão, em memória e com expiração."""

    def __init__(self, ttl_minutes: int = 480):
        self._ttl = timedelta(minutes=ttl_minutes)
        self._sessions: dict[str, ActiveSession] = {}
        self._lock = threading.Lock()

    def create(self, profile: UserProfile) -> ActiveSession:
        now = datetime.now(timezone.utc)
        session = ActiveSession(
            token=str(uuid.uuid4()),
            profile=profile,
            issued_at=now,
            expires_at=now + self._ttl,
        )
        with self._lock:
            self._sessions[session.token] = session
        return session

    def get(self, token: str) -> ActiveSession | None:
        with self._lock:
            session = self._sessions.get(token)
            if session is None:
                return None
            if session.expires_at <= datetime.now(timezone.utc):
                del self._sessions[token]
                return None
            return session

    def require(self, token: str | None) -> ActiveSession:
        session = self.get(token) if token else None
        if session is None:
            raise Unauthorized(SESSION_INVALID)
        return session

    def revoke(self, token: str) -> None:
        with self._lock:
            self._sessions.pop(token, None)

    def purge_expired(self) -> int:
        now = datetime.now(timezone.utc)
        with self._lock:
            expired = [t for t, s in self._sessions.items() if s.expires_at <= now]
            for t in expired:
                del self._sessions[t]
        return len(expired)


class LoginRateLimiter:
    """Janela móvel de tentativas de login por usuário (``limits``, em memória).

    Chaves expiram junto com a janela, então logins desconhecidos não acumulam.
    """

    NAMESPACE = "login"

    def __init__(self, max_attempts: int = 5, window_seconds: int = 60):
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self.item = RateLimitItemPerSecond(max_attempts, window_seconds)
        self.storage = MemoryStorage()
        self._strategy = MovingWindowRateLimiter(self.storage)

    def check(self, login: str) -> bool:
        return self._strategy.hit(self.item, self.NAMESPACE, login)

    def reset(self, login: str) -> None:
        self._strategy.clear(self.item, self.NAMESPACE, login)


@lru_cache
def get_session_store() -> SessionStore:
    return SessionStore(ttl_minutes=get_settings().SESSION_TTL_MINUTES)


@lru_cache
def get_rate_limiter() -> LoginRateLimiter:
    settings: Settings = get_settings()
    return LoginRateLimiter(settings.LOGIN_MAX_ATTEMPTS, settings.LOGIN_WINDOW_SECONDS)


def bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
) -> str | None:
    return credentials.credentials if credentials else None


def require_session(
    token: str | None = Depends(bearer_token),
    sessions: SessionStore = Depends(get_session_store),
) -> ActiveSession:
    return sessions.require(token)
