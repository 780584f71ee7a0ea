"""
Admin Service - user administration (listing, activation).
"""
from typing import List, Optional, Tuple

from fastapi import Depends

from database import get_db
from errors import InvalidInputError, NotFoundError
from models import UserOut
from models_orm import RefreshTokenORM, Role, UserORM

from .base import HTTPException, Session, datetime, handle_db_error, logger, normalize_page


class AdminService:
    """Service for administering user accounts."""

    def __init__(self, db: Session):
        self.db = db

    def list_users(
        self,
        role: Optional[Role] = None,
        search: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Tuple[List[UserOut], int]:
        page, page_size, offset = normalize_page(page, page_size)

        query = self.db.query(UserORM)
        if role:
            query = query.filter(UserORM.role == role)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(UserORM.name.ilike(pattern) | UserORM.email.ilike(pattern))

        total = query.count()
        users = query.order_by(UserORM.id.asc()).offset(offset).limit(page_size).all()
        return [UserOut.model_validate(u) for u in users], total

    def set_active(self, admin_user_id: int, user_id: int, active: bool) -> UserOut:
        """Activate or deactivate an account; deactivation also revokes its refresh tokens."""
        try:
            if admin_user_id == user_id and not active:
                raise InvalidInputError("Administrators cannot deactivate themselves")

            user = self.db.query(UserORM).filter(UserORM.id == user_id).first()
            if not user:
                raise NotFoundError("User not found")

            user.is_active = active
            if not active:
                self.db.query(RefreshTokenORM).filter(
                    RefreshTokenORM.user_id == user.id,
                    RefreshTokenORM.revoked_at.is_(None),
                ).update({"revoked_at": datetime.now()}, synchronize_session=False)

            self.db.commit()
            self.db.refresh(user)
            logger.info(f"Admin {admin_user_id} set user {user.id} active={active}")
            return UserOut.model_validate(user)

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            handle_db_error(self.db, "update user status", e)


def get_admin_service(db: Session = Depends(get_db)) -> AdminService:
    """Dependency injection helper."""
    return AdminService(db)
