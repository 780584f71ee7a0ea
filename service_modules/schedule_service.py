"""
Schedule Service - handles trainer sessions, trainee calendars, and conflict checks.
"""
from typing import List, Optional, Tuple

from fastapi import Depends

from database import get_db
from errors import ConflictError, InvalidInputError, NotFoundError
from models import CalendarDay, ScheduleCreate, ScheduleOut, ScheduleUpdate, UpcomingSchedules
from models_orm import (
    OPEN_STATUSES, LocationORM, ProgramAssignmentORM, ScheduleORM, ScheduleStatus,
)

from . import stats
from .base import (
    HTTPException, Session, datetime, get_client_of_trainer, get_trainee_profile,
    get_trainer_profile, handle_db_error, logger, normalize_page, set_field, timedelta,
)
from .notification_service import NotificationService
from .trainee_service import recompute_trainee_stats

# Status changes a trainer may make through an update
ALLOWED_TRANSITIONS = {
    ScheduleStatus.SCHEDULED: {ScheduleStatus.CONFIRMED, ScheduleStatus.CANCELLED},
    ScheduleStatus.CONFIRMED: {ScheduleStatus.COMPLETED, ScheduleStatus.CANCELLED, ScheduleStatus.NO_SHOW},
}

# Statuses that never block a new booking
NON_BLOCKING = (ScheduleStatus.CANCELLED, ScheduleStatus.COMPLETED)


def check_transition(current: ScheduleStatus, target: ScheduleStatus) -> None:
    if current == target:
        return
    if target not in ALLOWED_TRANSITIONS.get(current, set()):
        raise ConflictError(f"Cannot change schedule status from {current.value} to {target.value}")


class ScheduleService:
    """Service for managing schedules and the upcoming-session window."""

    def __init__(self, db: Session):
        self.db = db
        self.notifications = NotificationService(db)

    # --- CONFLICTS ---
    def find_conflict(self, trainer_id: int, start: datetime, duration: int, exclude_id: Optional[int] = None):
        """Existing trainer booking overlapping [start, start+duration), or None."""
        # Neighbouring days too, so sessions spanning midnight are caught
        candidates = self.db.query(ScheduleORM).filter(
            ScheduleORM.trainer_id == trainer_id,
            ScheduleORM.date >= start.date() - timedelta(days=1),
            ScheduleORM.date <= start.date() + timedelta(days=1),
            ScheduleORM.status.notin_(NON_BLOCKING),
        ).all()
        return stats.find_conflict(start, duration, candidates, exclude_id)

    def _assert_free(self, trainer_id: int, start: datetime, duration: int, exclude_id: Optional[int] = None):
        conflict = self.find_conflict(trainer_id, start, duration, exclude_id)
        if conflict:
            logger.info(f"Schedule conflict for trainer {trainer_id} at {start} with schedule {conflict.id}")
            raise ConflictError(
                "Schedule conflicts with an existing session",
                details={
                    "conflictingScheduleId": conflict.id,
                    "date": conflict.date.isoformat(),
                    "time": conflict.time.strftime("%H:%M"),
                    "duration": conflict.duration,
                },
            )

    # --- TRAINER ---
    def _trainer_schedule(self, trainer_id: int, schedule_id: int) -> ScheduleORM:
        schedule = self.db.query(ScheduleORM).filter(
            ScheduleORM.id == schedule_id,
            ScheduleORM.trainer_id == trainer_id,
        ).first()
        if not schedule:
            raise NotFoundError("Schedule not found")
        return schedule

    def list_trainer_schedules(
        self,
        user_id: int,
        from_date=None,
        to_date=None,
        status: Optional[ScheduleStatus] = None,
        trainee_id: Optional[int] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Tuple[List[ScheduleOut], int]:
        page, page_size, offset = normalize_page(page, page_size)
        trainer = get_trainer_profile(self.db, user_id)

        query = self.db.query(ScheduleORM).filter(ScheduleORM.trainer_id == trainer.id)
        query = self._apply_filters(query, from_date, to_date, status)
        if trainee_id:
            query = query.filter(ScheduleORM.trainee_id == trainee_id)

        total = query.count()
        rows = query.order_by(ScheduleORM.date.asc(), ScheduleORM.time.asc()).offset(offset).limit(page_size).all()
        return [ScheduleOut.model_validate(s) for s in rows], total

    def get_trainer_schedule(self, user_id: int, schedule_id: int) -> ScheduleOut:
        trainer = get_trainer_profile(self.db, user_id)
        return ScheduleOut.model_validate(self._trainer_schedule(trainer.id, schedule_id))

    def create_schedule(self, user_id: int, data: ScheduleCreate) -> ScheduleOut:
        try:
            trainer = get_trainer_profile(self.db, user_id)
            trainee = get_client_of_trainer(self.db, trainer.id, data.trainee_id)
            self._check_references(trainee.id, data.location_id, data.program_assignment_id)

            start = datetime.combine(data.date, data.time)
            self._assert_free(trainer.id, start, data.duration)

            schedule = ScheduleORM(
                trainer_id=trainer.id,
                trainee_id=trainee.id,
                location_id=data.location_id,
                program_assignment_id=data.program_assignment_id,
                date=data.date,
                time=data.time,
                duration=data.duration,
                title=data.title,
                description=data.description,
                session_type=data.session_type,
                planned_exercises=data.planned_exercises or [],
                notes=data.notes,
                status=ScheduleStatus.SCHEDULED,
            )
            self.db.add(schedule)
            self.db.flush()

            self.notifications.add_notification(
                trainee.user_id,
                "schedule",
                "New session scheduled",
                f"{data.title} on {data.date.isoformat()} at {data.time.strftime('%H:%M')}",
                related_id=schedule.id,
                related_type="schedule",
            )
            recompute_trainee_stats(self.db, trainee)

            self.db.commit()
            self.db.refresh(schedule)
            logger.info(f"Trainer {trainer.id} scheduled session {schedule.id} for trainee {trainee.id} at {start}")
            return ScheduleOut.model_validate(schedule)

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            handle_db_error(self.db, "create schedule", e)

    def update_schedule(self, user_id: int, schedule_id: int, data: ScheduleUpdate) -> ScheduleOut:
        try:
            trainer = get_trainer_profile(self.db, user_id)
            schedule = self._trainer_schedule(trainer.id, schedule_id)
            changes = data.model_dump(exclude_unset=True)

            if schedule.status not in OPEN_STATUSES and set(changes) - {"notes", "status"}:
                raise ConflictError(f"Cannot edit a {schedule.status.value} schedule")

            if "location_id" in changes:
                self._check_references(schedule.trainee_id, changes["location_id"], None)

            new_date = changes.get("date") or schedule.date
            new_time = changes.get("time") or schedule.time
            new_duration = changes.get("duration") or schedule.duration
            rescheduled = (new_date, new_time, new_duration) != (schedule.date, schedule.time, schedule.duration)
            if rescheduled:
                self._assert_free(trainer.id, datetime.combine(new_date, new_time), new_duration, exclude_id=schedule.id)

            for field in ("location_id", "title", "description", "session_type", "notes"):
                if field in changes:
                    set_field(schedule, field, changes[field])
            if changes.get("planned_exercises") is not None:
                schedule.planned_exercises = changes["planned_exercises"]
            schedule.date, schedule.time, schedule.duration = new_date, new_time, new_duration

            status_changed = False
            new_status = changes.get("status")
            if new_status is not None and new_status != schedule.status:
                check_transition(schedule.status, new_status)
                schedule.status = new_status
                status_changed = True
                if new_status == ScheduleStatus.CANCELLED:
                    schedule.cancelled_at = datetime.now()
                    schedule.cancelled_by = user_id

            if rescheduled:
                self.notifications.add_notification(
                    schedule.trainee.user_id,
                    "schedule",
                    "Session rescheduled",
                    f"{schedule.title} moved to {new_date.isoformat()} at {new_time.strftime('%H:%M')}",
                    related_id=schedule.id,
                    related_type="schedule",
                )
            if status_changed or rescheduled:
                recompute_trainee_stats(self.db, schedule.trainee)

            self.db.commit()
            self.db.refresh(schedule)
            return ScheduleOut.model_validate(schedule)

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            handle_db_error(self.db, "update schedule", e)

    def cancel_schedule(self, user_id: int, schedule_id: int, reason: Optional[str] = None) -> ScheduleOut:
        try:
            trainer = get_trainer_profile(self.db, user_id)
            schedule = self._trainer_schedule(trainer.id, schedule_id)
            if schedule.status == ScheduleStatus.CANCELLED:
                raise ConflictError("Schedule is already cancelled")
            check_transition(schedule.status, ScheduleStatus.CANCELLED)

            schedule.status = ScheduleStatus.CANCELLED
            schedule.cancelled_at = datetime.now()
            schedule.cancelled_by = user_id
            schedule.cancellation_reason = reason

            self.notifications.add_notification(
                schedule.trainee.user_id,
                "schedule",
                "Session cancelled",
                f"{schedule.title} on {schedule.date.isoformat()} was cancelled" + (f": {reason}" if reason else ""),
                related_id=schedule.id,
                related_type="schedule",
                priority="high",
            )
            recompute_trainee_stats(self.db, schedule.trainee)

            self.db.commit()
            self.db.refresh(schedule)
            logger.info(f"Trainer {trainer.id} cancelled schedule {schedule.id}")
            return ScheduleOut.model_validate(schedule)

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            handle_db_error(self.db, "cancel schedule", e)

    # --- TRAINEE ---
    def list_trainee_schedules(self, user_id: int, from_date=None, to_date=None, status: Optional[ScheduleStatus] = None) -> List[ScheduleOut]:
        trainee = get_trainee_profile(self.db, user_id)
        query = self.db.query(ScheduleORM).filter(ScheduleORM.trainee_id == trainee.id)
        query = self._apply_filters(query, from_date, to_date, status)
        rows = query.order_by(ScheduleORM.date.asc(), ScheduleORM.time.asc()).all()
        return [ScheduleOut.model_validate(s) for s in rows]

    def get_trainee_schedule(self, user_id: int, schedule_id: int) -> ScheduleOut:
        trainee = get_trainee_profile(self.db, user_id)
        schedule = self.db.query(ScheduleORM).filter(
            ScheduleORM.id == schedule_id,
            ScheduleORM.trainee_id == trainee.id,
        ).first()
        if not schedule:
            raise NotFoundError("Schedule not found")
        return ScheduleOut.model_validate(schedule)

    def get_upcoming(self, user_id: int, days=None, now: Optional[datetime] = None) -> UpcomingSchedules:
        """Open sessions in the next `days` days plus a day-by-day calendar."""
        days = stats.parse_days(days)
        now = now or datetime.now()
        trainee = get_trainee_profile(self.db, user_id)

        rows = self.db.query(ScheduleORM).filter(
            ScheduleORM.trainee_id == trainee.id,
            ScheduleORM.status.in_(OPEN_STATUSES),
            ScheduleORM.date >= now.date(),
            ScheduleORM.date <= (now + timedelta(days=days)).date(),
        ).all()

        sessions, calendar = stats.build_upcoming_window(rows, days, now)
        return UpcomingSchedules(
            days=days,
            sessions=[ScheduleOut.model_validate(s) for s in sessions],
            calendar=[CalendarDay(**cell) for cell in calendar],
        )

    # --- HELPERS ---
    def _apply_filters(self, query, from_date, to_date, status):
        if from_date and to_date and from_date > to_date:
            raise InvalidInputError("fromDate must not be after toDate")
        if from_date:
            query = query.filter(ScheduleORM.date >= from_date)
        if to_date:
            query = query.filter(ScheduleORM.date <= to_date)
        if status:
            query = query.filter(ScheduleORM.status == status)
        return query

    def _check_references(self, trainee_id: int, location_id: Optional[int], assignment_id: Optional[int]):
        if location_id is not None:
            location = self.db.query(LocationORM).filter(
                LocationORM.id == location_id,
                LocationORM.is_active == True,  # noqa: E712
            ).first()
            if not location:
                raise InvalidInputError("Location not found")
        if assignment_id is not None:
            assignment = self.db.query(ProgramAssignmentORM).filter(
                ProgramAssignmentORM.id == assignment_id,
                ProgramAssignmentORM.trainee_id == trainee_id,
            ).first()
            if not assignment:
                raise InvalidInputError("Program assignment does not belong to this trainee")


def get_schedule_service(db: Session = Depends(get_db)) -> ScheduleService:
    """Dependency injection helper."""
    return ScheduleService(db)
