"""
Notification Service - handles creating and managing user notifications.
"""
from typing import List, Optional, Tuple

from fastapi import Depends

from database import get_db
from errors import NotFoundError
from models import NotificationOut
from models_orm import NotificationORM

from .base import HTTPException, Session, datetime, handle_db_error, logger, normalize_page


class NotificationService:
    """Service for managing user notifications."""

    def __init__(self, db: Session):
        self.db = db

    def add_notification(
        self,
        user_id: int,
        notification_type: str,
        title: str,
        message: str,
        related_id: Optional[int] = None,
        related_type: Optional[str] = None,
        action_url: Optional[str] = None,
        priority: str = "medium",
    ) -> NotificationORM:
        """Stage a notification in the caller's transaction (no commit)."""
        notification = NotificationORM(
            user_id=user_id,
            type=notification_type,
            title=title,
            message=message,
            related_id=related_id,
            related_type=related_type,
            action_url=action_url,
            priority=priority,
            is_read=False,
            sent_via=["in_app"],
            created_at=datetime.now(),
        )
        self.db.add(notification)
        logger.info(f"Queued {notification_type} notification for user {user_id}: {title}")
        return notification

    def create_notification(self, user_id: int, notification_type: str, title: str, message: str, **kwargs) -> NotificationOut:
        """Create and commit a notification for a user."""
        try:
            notification = self.add_notification(user_id, notification_type, title, message, **kwargs)
            self.db.commit()
            self.db.refresh(notification)
            return NotificationOut.model_validate(notification)
        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            handle_db_error(self.db, "create notification", e)

    def list_notifications(
        self,
        user_id: int,
        page: int = 1,
        page_size: int = 20,
        unread_only: bool = False,
        notification_type: Optional[str] = None,
    ) -> Tuple[List[NotificationOut], int, int]:
        """Returns (page of notifications, total matching, unread count)."""
        page, page_size, offset = normalize_page(page, page_size)

        query = self.db.query(NotificationORM).filter(NotificationORM.user_id == user_id)
        if unread_only:
            query = query.filter(NotificationORM.is_read == False)  # noqa: E712
        if notification_type:
            query = query.filter(NotificationORM.type == notification_type)

        total = query.count()
        rows = query.order_by(
            NotificationORM.created_at.desc(), NotificationORM.id.desc()
        ).offset(offset).limit(page_size).all()

        return [NotificationOut.model_validate(n) for n in rows], total, self.get_unread_count(user_id)

    def get_unread_count(self, user_id: int) -> int:
        """Get count of unread notifications for a user."""
        return self.db.query(NotificationORM).filter(
            NotificationORM.user_id == user_id,
            NotificationORM.is_read == False,  # noqa: E712
        ).count()

    def mark_as_read(self, notification_id: int, user_id: int) -> NotificationOut:
        """
        Mark one of the user's notifications as read.

        Someone else's notification is reported as not found. Marking an
        already-read notification keeps its original read_at.
        """
        try:
            notification = self.db.query(NotificationORM).filter(
                NotificationORM.id == notification_id,
                NotificationORM.user_id == user_id,
            ).first()

            if not notification:
                raise NotFoundError("Notification not found")

            if not notification.is_read:
                notification.is_read = True
                notification.read_at = datetime.now()
                self.db.commit()
                self.db.refresh(notification)

            return NotificationOut.model_validate(notification)

        except HTTPException:
            raise
        except Exception as e:
            handle_db_error(self.db, "mark notification as read", e)

    def mark_all_as_read(self, user_id: int) -> int:
        """Mark all unread notifications as read; returns how many changed."""
        try:
            updated = self.db.query(NotificationORM).filter(
                NotificationORM.user_id == user_id,
                NotificationORM.is_read == False,  # noqa: E712
            ).update(
                {"is_read": True, "read_at": datetime.now()},
                synchronize_session=False,
            )
            self.db.commit()
            logger.info(f"Marked {updated} notifications as read for user {user_id}")
            return updated

        except Exception as e:
            handle_db_error(self.db, "mark notifications as read", e)

    def delete_notification(self, notification_id: int, user_id: int) -> None:
        """Delete a notification."""
        try:
            notification = self.db.query(NotificationORM).filter(
                NotificationORM.id == notification_id,
                NotificationORM.user_id == user_id,
            ).first()

            if not notification:
                raise NotFoundError("Notification not found")

            self.db.delete(notification)
            self.db.commit()

        except HTTPException:
            raise
        except Exception as e:
            handle_db_error(self.db, "delete notification", e)


def get_notification_service(db: Session = Depends(get_db)) -> NotificationService:
    """Dependency injection helper."""
    return NotificationService(db)
