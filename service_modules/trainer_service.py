"""
Trainer Service - handles the trainer dashboard, analytics and the public trainer directory.
"""
from typing import List, Optional

from fastapi import Depends
from sqlalchemy import func

from database import get_db
from errors import NotFoundError
from models import (
    AnalyticsOverview, ClientAnalytics, DashboardStats, ProgressPoint, RecentClient, ScheduleOut,
    TopExercise, TrainerOut, WeeklyCount,
)
from models_orm import (
    OPEN_STATUSES, ExerciseSetORM, MetricORM, ScheduleORM, ScheduleStatus, SessionCardORM,
    SessionExerciseORM, TraineeORM, TrainerORM, UserORM,
)

from . import stats
from .base import (
    Session, datetime, get_client_of_trainer, get_trainer_profile, logger, timedelta,
)

ANALYTICS_WEEKS = 8
RETENTION_WINDOW_DAYS = 30


class TrainerService:
    """Service for trainer-facing aggregates and trainer lookups."""

    def __init__(self, db: Session):
        self.db = db

    # --- DASHBOARD ---
    def get_dashboard_stats(self, user_id: int, now: Optional[datetime] = None) -> DashboardStats:
        now = now or datetime.now()
        today = now.date()
        trainer = get_trainer_profile(self.db, user_id)

        clients = self.db.query(TraineeORM).filter(TraineeORM.trainer_id == trainer.id).all()
        by_status = dict(
            self.db.query(ScheduleORM.status, func.count(ScheduleORM.id))
            .filter(ScheduleORM.trainer_id == trainer.id)
            .group_by(ScheduleORM.status)
            .all()
        )

        week_begin = stats.week_start(today)
        week_end = week_begin + timedelta(days=6)
        week_rows = self.db.query(ScheduleORM).filter(
            ScheduleORM.trainer_id == trainer.id,
            ScheduleORM.date >= week_begin,
            ScheduleORM.date <= week_end,
            ScheduleORM.status != ScheduleStatus.CANCELLED,
        ).order_by(ScheduleORM.date.asc(), ScheduleORM.time.asc()).all()

        open_rows = self.db.query(ScheduleORM).filter(
            ScheduleORM.trainer_id == trainer.id,
            ScheduleORM.status.in_(OPEN_STATUSES),
            ScheduleORM.date >= today,
        ).all()

        last_sessions = dict(
            self.db.query(ScheduleORM.trainee_id, func.max(ScheduleORM.date))
            .filter(ScheduleORM.trainer_id == trainer.id, ScheduleORM.status == ScheduleStatus.COMPLETED)
            .group_by(ScheduleORM.trainee_id)
            .all()
        )
        recent = sorted(
            clients,
            key=lambda c: (last_sessions.get(c.id) or c.join_date or today),
            reverse=True,
        )[:5]

        return DashboardStats(
            total_clients=len(clients),
            active_clients=sum(1 for c in clients if c.status == "active"),
            total_sessions=sum(by_status.values()),
            completed_sessions=by_status.get(ScheduleStatus.COMPLETED, 0),
            upcoming_sessions=sum(1 for s in open_rows if stats.schedule_start(s) >= now),
            average_rating=trainer.rating or 0.0,
            today_sessions=[ScheduleOut.model_validate(s) for s in week_rows if s.date == today],
            week_sessions=[ScheduleOut.model_validate(s) for s in week_rows],
            recent_clients=[
                RecentClient(id=c.id, name=c.name, profile_image=c.profile_image, last_session=last_sessions.get(c.id))
                for c in recent
            ],
        )

    # --- ANALYTICS ---
    def get_analytics_overview(self, user_id: int, now: Optional[datetime] = None) -> AnalyticsOverview:
        today = (now or datetime.now()).date()
        trainer = get_trainer_profile(self.db, user_id)
        window_start = stats.week_start(today) - timedelta(weeks=ANALYTICS_WEEKS - 1)

        completed_dates = [
            d for (d,) in self.db.query(ScheduleORM.date).filter(
                ScheduleORM.trainer_id == trainer.id,
                ScheduleORM.status == ScheduleStatus.COMPLETED,
                ScheduleORM.date >= window_start,
            ).all()
        ]
        weekly = stats.sessions_per_week(completed_dates, today, ANALYTICS_WEEKS)

        clients = self.db.query(TraineeORM).filter(TraineeORM.trainer_id == trainer.id).all()
        growth = stats.sessions_per_week([c.join_date for c in clients if c.join_date], today, ANALYTICS_WEEKS)

        # Retention: share of current clients who trained in the last 30 days
        recent_trainees = {
            t for (t,) in self.db.query(ScheduleORM.trainee_id).filter(
                ScheduleORM.trainer_id == trainer.id,
                ScheduleORM.status == ScheduleStatus.COMPLETED,
                ScheduleORM.date >= today - timedelta(days=RETENTION_WINDOW_DAYS),
            ).distinct().all()
        }
        retained = sum(1 for c in clients if c.id in recent_trainees)
        retention = round(retained / len(clients) * 100, 2) if clients else 0.0

        popular = self.db.query(SessionExerciseORM.name, func.count(SessionExerciseORM.id).label("uses")).join(
            SessionCardORM, SessionExerciseORM.session_card_id == SessionCardORM.id
        ).filter(
            SessionCardORM.trainer_id == trainer.id
        ).group_by(SessionExerciseORM.name).order_by(func.count(SessionExerciseORM.id).desc()).limit(5).all()

        return AnalyticsOverview(
            average_session_rate=round(len(completed_dates) / ANALYTICS_WEEKS, 2),
            client_retention_rate=retention,
            sessions_per_week=[WeeklyCount(**w) for w in weekly],
            client_growth=[WeeklyCount(**w) for w in growth],
            popular_exercises=[name for name, _ in popular],
        )

    def get_client_analytics(self, user_id: int, trainee_id: int) -> ClientAnalytics:
        trainer = get_trainer_profile(self.db, user_id)
        trainee = get_client_of_trainer(self.db, trainer.id, trainee_id)

        by_status = dict(
            self.db.query(ScheduleORM.status, func.count(ScheduleORM.id))
            .filter(ScheduleORM.trainee_id == trainee.id)
            .group_by(ScheduleORM.status)
            .all()
        )
        avg_duration = self.db.query(func.avg(SessionCardORM.duration)).filter(
            SessionCardORM.trainee_id == trainee.id
        ).scalar()

        top = self.db.query(
            SessionExerciseORM.name,
            func.max(ExerciseSetORM.weight),
            func.sum(func.coalesce(ExerciseSetORM.reps, 0) * func.coalesce(ExerciseSetORM.weight, 0)),
        ).join(
            SessionCardORM, SessionExerciseORM.session_card_id == SessionCardORM.id
        ).join(
            ExerciseSetORM, ExerciseSetORM.session_exercise_id == SessionExerciseORM.id
        ).filter(
            SessionCardORM.trainee_id == trainee.id
        ).group_by(SessionExerciseORM.name).order_by(
            func.max(ExerciseSetORM.weight).desc()
        ).limit(5).all()

        logger.debug(f"[ANALYTICS] client {trainee.id}: {by_status}")
        return ClientAnalytics(
            trainee_id=trainee.id,
            name=trainee.name,
            total_sessions=sum(by_status.values()),
            attendance_rate=stats.attendance_rate(
                by_status.get(ScheduleStatus.COMPLETED, 0),
                by_status.get(ScheduleStatus.CANCELLED, 0),
                by_status.get(ScheduleStatus.NO_SHOW, 0),
            ),
            average_session_duration=int(round(avg_duration)) if avg_duration is not None else 0,
            weight_progress=self._metric_series(trainee.id, "weight"),
            body_fat_progress=self._metric_series(trainee.id, "body_fat"),
            top_exercises=[
                TopExercise(name=name, max_weight=max_weight or 0.0, total_volume=round(volume or 0.0, 2))
                for name, max_weight, volume in top
            ],
        )

    def _metric_series(self, trainee_id: int, metric_type: str) -> List[ProgressPoint]:
        rows = self.db.query(MetricORM.date, MetricORM.value).filter(
            MetricORM.trainee_id == trainee_id,
            MetricORM.type == metric_type,
        ).order_by(MetricORM.date.asc()).all()
        return [ProgressPoint(date=d, value=v) for d, v in rows]

    # --- PUBLIC DIRECTORY ---
    def list_trainers(self, specialization: Optional[str] = None) -> List[TrainerOut]:
        trainers = self.db.query(TrainerORM).join(UserORM, TrainerORM.user_id == UserORM.id).filter(
            UserORM.is_active == True  # noqa: E712
        ).order_by(TrainerORM.rating.desc(), UserORM.name.asc()).all()
        if specialization:
            wanted = specialization.strip().lower()
            trainers = [t for t in trainers if any(wanted == s.lower() for s in (t.specialization or []))]
        return [TrainerOut.model_validate(t) for t in trainers]

    def get_trainer(self, trainer_id: int) -> TrainerOut:
        trainer = self.db.query(TrainerORM).join(UserORM, TrainerORM.user_id == UserORM.id).filter(
            TrainerORM.id == trainer_id,
            UserORM.is_active == True,  # noqa: E712
        ).first()
        if not trainer:
            raise NotFoundError("Trainer not found")
        return TrainerOut.model_validate(trainer)


def get_trainer_service(db: Session = Depends(get_db)) -> TrainerService:
    """Dependency injection helper."""
    return TrainerService(db)
