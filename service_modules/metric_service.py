"""
Metric Service - handles trainee body measurements (weight, body fat, ...).
"""
from typing import List, Optional

from fastapi import Depends

from database import get_db
from errors import InvalidInputError
from models import MetricCreate, MetricOut
from models_orm import MetricORM, TraineeORM

from .base import HTTPException, Session, get_trainee_profile, handle_db_error, logger


class MetricService:
    """Service for recording and listing trainee metrics."""

    def __init__(self, db: Session):
        self.db = db

    def list_metrics(
        self,
        trainee_id: int,
        metric_type: Optional[str] = None,
        from_date=None,
        to_date=None,
    ) -> List[MetricOut]:
        if from_date and to_date and from_date > to_date:
            raise InvalidInputError("fromDate must not be after toDate")

        query = self.db.query(MetricORM).filter(MetricORM.trainee_id == trainee_id)
        if metric_type:
            query = query.filter(MetricORM.type == metric_type)
        if from_date:
            query = query.filter(MetricORM.date >= from_date)
        if to_date:
            query = query.filter(MetricORM.date <= to_date)

        rows = query.order_by(MetricORM.date.desc(), MetricORM.id.desc()).all()
        return [MetricOut.model_validate(m) for m in rows]

    def list_metrics_for_user(self, user_id: int, metric_type: Optional[str] = None, from_date=None, to_date=None) -> List[MetricOut]:
        trainee = get_trainee_profile(self.db, user_id)
        return self.list_metrics(trainee.id, metric_type, from_date, to_date)

    def record_metric(self, trainee: TraineeORM, data: MetricCreate, recorded_by: int) -> MetricOut:
        try:
            metric = MetricORM(
                trainee_id=trainee.id,
                date=data.date,
                type=data.type,
                value=data.value,
                unit=data.unit,
                measurement_type=data.measurement_type,
                notes=data.notes,
                recorded_by=recorded_by,
            )
            self.db.add(metric)

            # Keep the profile weight in step with the newest weigh-in
            if data.type == "weight":
                newer = self.db.query(MetricORM).filter(
                    MetricORM.trainee_id == trainee.id,
                    MetricORM.type == "weight",
                    MetricORM.date > data.date,
                ).first()
                if not newer:
                    trainee.weight = data.value

            self.db.commit()
            self.db.refresh(metric)
            logger.info(f"Recorded {data.type} metric for trainee {trainee.id}: {data.value}{data.unit}")
            return MetricOut.model_validate(metric)

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            handle_db_error(self.db, "record metric", e)


def get_metric_service(db: Session = Depends(get_db)) -> MetricService:
    """Dependency injection helper."""
    return MetricService(db)
