"""Admin credentials and session tokens.

Passwords are stored as salted PBKDF2-SHA256 hashes; sessions are HS256 JWTs
carrying `{id, username, role}` with a fixed issuer.
"""
import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from . import config, errors
from .db import get_db
from .models import AdminUser
from .utils import get_logger

logger = get_logger("autohub.auth")

ITERATIONS = 100_000
bearer = HTTPBearer(auto_error=False)


def hash_password(password: str, salt: Optional[str] = None) -> str:
    if salt is None:
        salt = secrets.token_hex(16)
    pwd_hash = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("utf-8"), ITERATIONS
    ).hex()
    return f"{salt}${pwd_hash}"


def verify_password(password: str, stored: str) -> bool:
    try:
        salt, pwd_hash = stored.split("$")
    except ValueError:
        return False
    test = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), ITERATIONS).hex()
    return secrets.compare_digest(test, pwd_hash)


def issue_token(user: AdminUser) -> str:
    now = datetime.now(timezone.utc)
    claims = {
        "id": user.id,
        "username": user.username,
        "role": user.role,
        "iat": now,
        "exp": now + timedelta(hours=config.JWT_EXPIRES_HOURS),
        "iss": config.JWT_ISSUER,
    }
    return jwt.encode(claims, config.JWT_SECRET, algorithm="HS256")


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, config.JWT_SECRET, algorithms=["HS256"], issuer=config.JWT_ISSUER)
    except jwt.ExpiredSignatureError:
        raise errors.AuthError("Session expired, please sign in again")
    except jwt.InvalidTokenError:
        raise errors.AuthError("Invalid authentication token")


def authenticate(db: Session, username: str, password: str) -> AdminUser:
    user = db.query(AdminUser).filter(AdminUser.username == username).first()
    if user is None or not verify_password(password, user.password_hash):
        logger.warning("Failed login attempt for %r", username)
        raise errors.AuthError("Invalid username or password")
    return user


def create_admin(db: Session, username: str, password: str, role: str = "admin") -> AdminUser:
    if db.query(AdminUser).filter(AdminUser.username == username).first() is not None:
        raise errors.ValidationError(f"User '{username}' already exists")
    user = AdminUser(username=username, password_hash=hash_password(password), role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Created %s user %s", role, username)
    return user


def change_password(db: Session, user: AdminUser, current: str, new: str):
    if not verify_password(current, user.password_hash):
        raise errors.AuthError("Current password is incorrect")
    user.password_hash = hash_password(new)
    db.commit()
    logger.info("Password rotated for %s", user.username)


def ensure_bootstrap_admin(db: Session):
    """Create the configured admin account when no admin exists yet."""
    if db.query(AdminUser).count() > 0:
        return None
    if not config.ADMIN_PASSWORD:
        logger.warning("No admin users and ADMIN_PASSWORD is not set; admin endpoints are unusable")
        return None
    return create_admin(db, config.ADMIN_USERNAME, config.ADMIN_PASSWORD)


def require_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    db: Session = Depends(get_db),
) -> AdminUser:
    if credentials is None:
        raise errors.AuthError("Authentication required")
    claims = decode_token(credentials.credentials)
    user = db.get(AdminUser, claims.get("id"))
    if user is None or user.role != "admin":
        raise errors.AuthError("Invalid authentication token")
    return user
