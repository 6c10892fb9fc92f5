from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session
from werkzeug.security import check_password_hash, generate_password_hash

from spendlog.db.models import User
from spendlog.expenses.errors import UserAlreadyExistsError


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return check_password_hash(password_hash, password)


def normalize_username(username: str) -> str:
    return (username or "").strip()


def find_user(session: Session, user_id: int) -> Optional[User]:
    return session.query(User).filter(User.id == int(user_id)).one_or_none()


def find_user_by_username(session: Session, username: str) -> Optional[User]:
    return session.query(User).filter(User.username == normalize_username(username)).one_or_none()


def register_user(session: Session, *, username: str, password: str) -> User:
    name = normalize_username(username)
    if not name:
        raise ValueError("Username is required")
    if find_user_by_username(session, name) is not None:
        raise UserAlreadyExistsError(f"User already exists: {name}")
    user = User(username=name, password_hash=hash_password(password))
    session.add(user)
    session.flush()
    return user
