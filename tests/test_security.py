"""
Unit Tests for authentication primitives
Tests for: password hashing, session store, login rate limiter, login lookup
"""
import time
from datetime import datetime, timedelta, timezone

import pytest

from app.core.errors import Unauthorized
from app.core.security import (
    LoginRateLimiter, SessionStore, get_rate_limiter, hash_password, verify_password,
)
from app.schemas import UserProfile
from app.services.users import authenticate, ensure_default_admin


def profile(login: str = "admin") -> UserProfile:
    return UserProfile(id=1, name="Administrador", login=login, role="admin")


class TestPasswordHashing:
    def test_hash_and_verify(self):
        hashed = hash_password("s3nha", rounds=4)
        assert hashed != "s3nha"
        assert verify_password("s3nha", hashed)
        assert not verify_password("errada", hashed)

    def test_corrupt_hash_does_not_raise(self):
        assert verify_password("x", "not-a-bcrypt-hash") is False


class TestSessionStore:
    def test_create_and_require(self):
        store = SessionStore(ttl_minutes=5)
        session = store.create(profile())
        assert store.require(session.token) == session
        assert session.identity == "admin"
        assert session.expires_at - session.issued_at == timedelta(minutes=5)

    def test_tokens_are_unique(self):
        store = SessionStore()
        assert store.create(profile()).token != store.create(profile()).token

    @pytest.mark.parametrize("token", [None, "", "desconhecido"])
    def test_missing_or_unknown_token(self, token):
        with pytest.raises(Unauthorized):
            SessionStore().require(token)

    def test_revoke(self):
        store = SessionStore()
        session = store.create(profile())
        store.revoke(session.token)
        assert store.get(session.token) is None
        store.revoke(session.token)

    def test_expired_session_is_dropped(self):
        store = SessionStore(ttl_minutes=0)
        session = store.create(profile())
        assert store.get(session.token) is None
        with pytest.raises(Unauthorized):
            store.require(session.token)

    def test_purge_expired(self):
        store = SessionStore(ttl_minutes=0)
        store.create(profile())
        store.create(profile())
        assert store.purge_expired() == 2
        assert store.purge_expired() == 0

    def test_session_expiry_is_in_future(self):
        session = SessionStore(ttl_minutes=1).create(profile())
        assert session.expires_at > datetime.now(timezone.utc)


class TestLoginRateLimiter:
    def test_blocks_after_max_attempts(self):
        limiter = LoginRateLimiter(max_attempts=3, window_seconds=60)
        assert [limiter.check("ana") for _ in range(4)] == [True, True, True, False]
        assert limiter.check("bia") is True

    def test_reset_clears_attempts(self):
        limiter = LoginRateLimiter(max_attempts=1, window_seconds=60)
        limiter.check("ana")
        assert limiter.check("ana") is False
        limiter.reset("ana")
        assert limiter.check("ana") is True

    def test_window_expiry(self):
        limiter = LoginRateLimiter(max_attempts=1, window_seconds=1)
        assert limiter.check("ana") is True
        assert limiter.check("ana") is False
        time.sleep(1.2)
        assert limiter.check("ana") is True

    def test_default_policy_is_five_per_minute(self):
        limiter = get_rate_limiter()
        assert (limiter.max_attempts, limiter.window_seconds) == (5, 60)
        assert limiter.item.get_expiry() == 60

    def test_limiters_do_not_share_attempts(self):
        first, second = LoginRateLimiter(1, 60), LoginRateLimiter(1, 60)
        assert first.check("ana") is True
        assert second.check("ana") is True


class TestAuthenticate:
    def test_exact_login(self, db, admin_user):
        result = authenticate(db, "admin", "secret123")
        assert result is not None
        assert result.login == "admin"

    def test_case_and_whitespace_insensitive(self, db, admin_user):
        assert authenticate(db, "  ADMIN ", "secret123") is not None

    def test_email_form_matches_base_login(self, db, admin_user):
        assert authenticate(db, "admin@hospital.local", "secret123") is not None

    def test_wrong_password(self, db, admin_user):
        assert authenticate(db, "admin", "nope") is None

    def test_blank_login(self, db, admin_user):
        assert authenticate(db, "   ", "secret123") is None

    def test_default_admin_is_created_then_updated(self, db):
        ensure_default_admin(db, "Chefe", "primeira")
        assert authenticate(db, "chefe", "primeira") is not None
        ensure_default_admin(db, "chefe", "segunda")
        assert authenticate(db, "chefe", "primeira") is None
        assert authenticate(db, "chefe", "segunda") is not None
