"""Authentication helpers: in-memory user store, password hashing, and JWT handling."""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from taylor_insurance.policy_book import PolicyBook

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
security = HTTPBearer(auto_error=False)

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-this-secret-in-production")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", "1440"))


class DuplicateUsernameError(ValueError):
    pass


class AuthFailureError(ValueError):
    pass


@dataclass
class User:
    username: str
    password_hash: str = field(repr=False)
    book: PolicyBook = field(default_factory=PolicyBook, repr=False)
    # Held around anything that reads then mutates the book.
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


class UserStore:
    """
    Process-local registry of accounts.

    Each PolicyEngine is handed its own store; nothing here is shared
    between instances. Usernames are matched exactly, whitespace included.
    """

    def __init__(self) -> None:
        self._users: dict[str, User] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._users)

    def __contains__(self, username: object) -> bool:
        return isinstance(username, str) and username in self._users

    def get(self, username: str) -> User | None:
        return self._users.get(username)

    def create_user(self, username: str, password: str) -> User:
        password_hash = hash_password(password)
        with self._lock:
            if username in self._users:
                raise DuplicateUsernameError(f"Username already exists: {username}")
            user = User(username=username, password_hash=password_hash)
            self._users[username] = user
        logger.info("Registered user %s", username)
        return user

    def resolve_user(self, username: str, password: str) -> User:
        user = self.get(username)
        if user is None or not verify_password(password, user.password_hash):
            logger.warning("Failed login for %s", username)
            raise AuthFailureError("Invalid username or password")
        return user


def create_access_token(data: dict, expires_minutes: int | None = None) -> str:
    payload = data.copy()
    expire_window = expires_minutes if expires_minutes is not None else JWT_EXPIRE_MINUTES
    expires_at = datetime.now(timezone.utc) + timedelta(minutes=expire_window)
    payload.update({"exp": expires_at})
    return jwt.encode(payload, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> dict | None:
    try:
        return jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None


def get_user_store(request: Request) -> UserStore:
    return request.app.state.user_store


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    store: UserStore = Depends(get_user_store),
) -> User:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    username = payload.get("sub")
    if not isinstance(username, str) or not username:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    user = store.get(username)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return user
