import logging
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

import bcrypt
from fastapi import Depends, Request
from jose import JWTError, jwt

from config import Settings
from errors import ForbiddenError, InvalidInputError, UnauthorizedError
from models_orm import Role, UserORM

logger = logging.getLogger("fitness_app")

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, decoded once from the bearer token."""
    user_id: int
    role: Role
    email: str = ""

    @property
    def is_trainer(self) -> bool:
        return self.role == Role.TRAINER

    @property
    def is_trainee(self) -> bool:
        return self.role == Role.TRAINEE

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


# --- PASSWORDS ---
def get_password_hash(password: str, rounds: int = 12) -> str:
    # bcrypt requires bytes, returns bytes. We store as string.
    pwd_bytes = password.encode("utf-8")
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(pwd_bytes, salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    if not hashed_password:
        # OAuth-only accounts have no password
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


def validate_password_strength(password: str) -> None:
    """At least 8 characters with an uppercase letter, a lowercase letter and a digit."""
    problems = []
    if len(password) < 8:
        problems.append("at least 8 characters")
    if not re.search(r"[A-Z]", password):
        problems.append("an uppercase letter")
    if not re.search(r"[a-z]", password):
        problems.append("a lowercase letter")
    if not re.search(r"\d", password):
        problems.append("a digit")
    if problems:
        raise InvalidInputError(
            "Password must contain " + ", ".join(problems),
            details=[{"field": "password", "message": p} for p in problems],
        )


# --- TOKENS ---
def _encode(claims: dict, settings: Settings, expires_delta: timedelta) -> str:
    now = datetime.now(timezone.utc)
    to_encode = claims.copy()
    to_encode.update({"iat": now, "exp": now + expires_delta})
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_access_token(user: UserORM, settings: Settings) -> str:
    claims = {
        "sub": str(user.id),
        "email": user.email,
        "role": Role(user.role).value,
        "type": ACCESS_TOKEN_TYPE,
    }
    return _encode(claims, settings, timedelta(minutes=settings.access_token_expire_minutes))


def create_refresh_token(user: UserORM, settings: Settings) -> Tuple[str, str, datetime]:
    """Returns (token, jti, expires_at); the jti is what gets persisted."""
    jti = uuid.uuid4().hex
    lifetime = timedelta(days=settings.refresh_token_expire_days)
    claims = {"sub": str(user.id), "type": REFRESH_TOKEN_TYPE, "jti": jti}
    token = _encode(claims, settings, lifetime)
    return token, jti, datetime.now() + lifetime


def decode_token(token: str, settings: Settings, expected_type: str = ACCESS_TOKEN_TYPE) -> dict:
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.info(f"AUTH: token rejected: {e}")
        raise UnauthorizedError("Invalid or expired token")

    if payload.get("type") != expected_type:
        raise UnauthorizedError("Invalid token type")
    if payload.get("sub") is None:
        raise UnauthorizedError("Invalid token payload")
    return payload


def identity_from_payload(payload: dict) -> Identity:
    try:
        return Identity(
            user_id=int(payload["sub"]),
            role=Role(payload.get("role")),
            email=payload.get("email") or "",
        )
    except (KeyError, TypeError, ValueError):
        raise UnauthorizedError("Invalid token payload")


# --- DEPENDENCIES ---
def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def extract_token(request: Request, cookie_name: str) -> Optional[str]:
    # Get token from Authorization header or cookie
    auth_header = request.headers.get("Authorization")
    if auth_header:
        scheme, _, value = auth_header.partition(" ")
        if scheme.lower() == "bearer" and value.strip():
            return value.strip()
    return request.cookies.get(cookie_name)


def get_current_identity(request: Request, settings: Settings = Depends(get_settings)) -> Identity:
    token = extract_token(request, settings.cookie_name)
    if not token:
        raise UnauthorizedError("Authentication required")
    return identity_from_payload(decode_token(token, settings))


def get_optional_identity(request: Request, settings: Settings = Depends(get_settings)) -> Optional[Identity]:
    """Like get_current_identity, but anonymous callers get None instead of a 401."""
    token = extract_token(request, settings.cookie_name)
    if not token:
        return None
    try:
        return identity_from_payload(decode_token(token, settings))
    except UnauthorizedError:
        return None


def require_roles(*roles: Role):
    allowed = frozenset(roles)

    def dependency(identity: Identity = Depends(get_current_identity)) -> Identity:
        if identity.role not in allowed:
            logger.info(f"AUTH: user {identity.user_id} ({identity.role.value}) denied, needs {sorted(r.value for r in allowed)}")
            raise ForbiddenError("Insufficient permissions")
        return identity

    return dependency


trainer_only = require_roles(Role.TRAINER)
trainee_only = require_roles(Role.TRAINEE)
admin_only = require_roles(Role.ADMIN)


def ensure_owner(identity: Optional[Identity], owner_user_id: int) -> None:
    """
    Ownership check for trainee-scoped resources.

    Trainers and admins pass; a trainee passes only for their own user id.
    """
    if identity is None:
        raise UnauthorizedError("Authentication required")
    if identity.role in (Role.TRAINER, Role.ADMIN):
        return
    if identity.user_id != int(owner_user_id):
        raise ForbiddenError("You do not have access to this resource")
