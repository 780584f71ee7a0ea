"""
Auth Service - handles user authentication, registration and refresh tokens.
"""
from typing import Optional

from fastapi import Depends

from auth import (
    REFRESH_TOKEN_TYPE, create_access_token, create_refresh_token, decode_token,
    get_password_hash, get_settings, validate_password_strength, verify_password,
)
from config import Settings
from database import get_db
from errors import ConflictError, ForbiddenError, NotFoundError, UnauthorizedError
from models import RegisterRequest, TokenPair, TraineeOut, TrainerOut, UserOut
from models_orm import RefreshTokenORM, Role, TraineeORM, TrainerORM, UserORM

from .base import HTTPException, Session, datetime, handle_db_error, logger


def create_profile(db: Session, user: UserORM) -> None:
    """Every trainer/trainee user owns exactly one profile row."""
    if user.role == Role.TRAINER:
        db.add(TrainerORM(user_id=user.id, specialization=[], certifications=[]))
    elif user.role == Role.TRAINEE:
        db.add(TraineeORM(user_id=user.id, goals=[], injuries=[], allergies=[], status="active"))


class AuthService:
    """Service for managing authentication and user registration."""

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings

    def _issue_tokens(self, user: UserORM) -> TokenPair:
        access_token = create_access_token(user, self.settings)
        refresh_token, jti, expires_at = create_refresh_token(user, self.settings)
        self.db.add(RefreshTokenORM(user_id=user.id, jti=jti, expires_at=expires_at))
        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=self.settings.access_token_expire_minutes * 60,
            user=UserOut.model_validate(user),
        )

    def register_user(self, data: RegisterRequest) -> TokenPair:
        """Register a new trainer or trainee together with their profile."""
        logger.debug(f"register_user called for {data.email}")
        try:
            validate_password_strength(data.password)

            email = data.email.strip().lower()
            if self.db.query(UserORM).filter(UserORM.email == email).first():
                raise ConflictError("Email already registered")

            user = UserORM(
                email=email,
                password_hash=get_password_hash(data.password, self.settings.bcrypt_rounds),
                name=data.name.strip(),
                role=Role(data.role),
                phone_number=data.phone_number,
                is_active=True,
                email_verified=False,
            )
            self.db.add(user)
            self.db.flush()
            create_profile(self.db, user)

            tokens = self._issue_tokens(user)
            self.db.commit()
            logger.info(f"Registered {user.role.value} user {user.id} ({user.email})")
            return tokens

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            handle_db_error(self.db, "register user", e)

    def authenticate_user(self, email: str, password: str) -> TokenPair:
        """Verify credentials and issue a token pair."""
        email = email.strip().lower()
        try:
            user = self.db.query(UserORM).filter(UserORM.email == email).first()
            if not user or not verify_password(password, user.password_hash):
                logger.info(f"AUTH: failed login for {email}")
                raise UnauthorizedError("Invalid email or password")
            if not user.is_active:
                raise ForbiddenError("Account is deactivated")

            user.last_login_at = datetime.now()
            tokens = self._issue_tokens(user)
            self.db.commit()
            logger.info(f"AUTH: user {user.id} logged in")
            return tokens

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            handle_db_error(self.db, "log in", e)

    def refresh(self, refresh_token: Optional[str]) -> TokenPair:
        """Rotate a refresh token: the presented one is revoked, a new pair issued."""
        if not refresh_token:
            raise UnauthorizedError("Refresh token required")
        payload = decode_token(refresh_token, self.settings, expected_type=REFRESH_TOKEN_TYPE)

        try:
            stored = self.db.query(RefreshTokenORM).filter(RefreshTokenORM.jti == payload.get("jti")).first()
            if not stored or stored.revoked_at is not None or stored.expires_at < datetime.now():
                raise UnauthorizedError("Refresh token is no longer valid")

            user = self.db.query(UserORM).filter(UserORM.id == stored.user_id).first()
            if not user or not user.is_active:
                raise UnauthorizedError("Refresh token is no longer valid")

            stored.revoked_at = datetime.now()
            tokens = self._issue_tokens(user)
            self.db.commit()
            return tokens

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            handle_db_error(self.db, "refresh token", e)

    def logout(self, user_id: Optional[int] = None, refresh_token: Optional[str] = None) -> int:
        """Revoke the given refresh token, or every live token of the user. Returns the count revoked."""
        try:
            query = self.db.query(RefreshTokenORM).filter(RefreshTokenORM.revoked_at.is_(None))
            if refresh_token:
                try:
                    payload = decode_token(refresh_token, self.settings, expected_type=REFRESH_TOKEN_TYPE)
                except UnauthorizedError:
                    return 0
                query = query.filter(RefreshTokenORM.jti == payload.get("jti"))
            elif user_id is not None:
                query = query.filter(RefreshTokenORM.user_id == user_id)
            else:
                return 0

            revoked = query.update({"revoked_at": datetime.now()}, synchronize_session=False)
            self.db.commit()
            return revoked

        except Exception as e:
            handle_db_error(self.db, "log out", e)

    def get_me(self, user_id: int) -> dict:
        user = self.db.query(UserORM).filter(UserORM.id == user_id).first()
        if not user:
            raise NotFoundError("User not found")

        profile = None
        if user.role == Role.TRAINER and user.trainer:
            profile = TrainerOut.model_validate(user.trainer)
        elif user.role == Role.TRAINEE and user.trainee:
            profile = TraineeOut.model_validate(user.trainee)
        return {"user": UserOut.model_validate(user), "profile": profile}

    def find_or_create_oauth_user(self, provider: str, oauth_id: str, email: str, name: str) -> UserORM:
        """
        Resolve an external identity to a local user.

        Matches on (provider, oauth_id) first, then links an existing account
        with the same email, and otherwise creates a trainee with a verified
        email and no password.
        """
        email = email.strip().lower()
        try:
            user = self.db.query(UserORM).filter(
                UserORM.oauth_provider == provider,
                UserORM.oauth_id == oauth_id,
            ).first()

            if not user:
                user = self.db.query(UserORM).filter(UserORM.email == email).first()
                if user:
                    user.oauth_provider = provider
                    user.oauth_id = oauth_id
                    logger.info(f"Linked {provider} identity to user {user.id}")
                else:
                    user = UserORM(
                        email=email,
                        password_hash=None,
                        name=name or email.split("@")[0],
                        role=Role.TRAINEE,
                        oauth_provider=provider,
                        oauth_id=oauth_id,
                        email_verified=True,
                        email_verified_at=datetime.now(),
                        is_active=True,
                    )
                    self.db.add(user)
                    self.db.flush()
                    create_profile(self.db, user)
                    logger.info(f"Created user {user.id} from {provider} identity")

            if not user.is_active:
                raise ForbiddenError("Account is deactivated")

            user.last_login_at = datetime.now()
            self.db.commit()
            self.db.refresh(user)
            return user

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            handle_db_error(self.db, "sign in with external provider", e)


def get_auth_service(db: Session = Depends(get_db), settings: Settings = Depends(get_settings)) -> AuthService:
    """Dependency injection helper."""
    return AuthService(db, settings)
