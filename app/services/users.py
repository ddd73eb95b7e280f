# app/services/users.py
import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.security import hash_password, verify_password
from app.db import atomic
from app.models import User
from app.schemas import UserProfile

logger = logging.getLogger(__name__)


def normalize_login(login: str) -> str:
    return (login or "").strip().lower()


def authenticate(db: Session, login: str, password: str) -> UserProfile | None:
    """Aceita o login exato, a parte antes do '@' ou ``login@...``."""
    normalized = normalize_login(login)
    if not normalized:
        return None
    terms = [normalized]
    base = normalized.split("@", 1)[0]
    if base != normalized:
        terms.append(base)
    if "@" not in normalized:
        terms.append(f"{normalized}@%")

    for term in terms:
        column = func.lower(User.login)
        cond = column.like(term) if "%" in term else column == term
        user = db.scalars(select(User).where(cond).order_by(User.id).limit(1)).first()
        if user is not None and verify_password(password, user.password_hash):
            return UserProfile.model_validate(user)
    return None


def ensure_default_admin(db: Session, login: str, password: str) -> None:
    normalized = normalize_login(login)
    if not normalized or not password.strip():
        return
    with atomic(db):
        user = db.scalars(
            select(User).where(
                (func.lower(User.login) == normalized) | func.lower(User.login).like(f"{normalized}@%")
            ).limit(1)
        ).first()
        hashed = hash_password(password)
        if user is None:
            db.add(User(name="Administrador", login=normalized, password_hash=hashed, role="admin"))
            logger.info("default_admin_created", extra={"login": normalized})
        else:
            user.login = normalized
            user.password_hash = hashed
