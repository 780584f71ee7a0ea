"""
Exercise Service - handles the exercise library (public + personal exercises).
"""
from typing import List, Optional

from fastapi import Depends
from sqlalchemy import func, or_

from database import get_db
from errors import NotFoundError
from models import CategoryCount, ExerciseCreate, ExerciseOut, ExerciseUpdate
from models_orm import ExerciseLibraryORM, SessionExerciseORM

from .base import HTTPException, Session, get_trainer_profile, handle_db_error, logger


class ExerciseService:
    """Service for managing exercises."""

    def __init__(self, db: Session):
        self.db = db

    def get_exercises(
        self,
        user_id: int,
        category: Optional[str] = None,
        search: Optional[str] = None,
        mine_only: bool = False,
    ) -> List[ExerciseOut]:
        """Get all exercises accessible to a trainer (public + personal)."""
        trainer = get_trainer_profile(self.db, user_id)

        if mine_only:
            query = self.db.query(ExerciseLibraryORM).filter(ExerciseLibraryORM.trainer_id == trainer.id)
        else:
            query = self.db.query(ExerciseLibraryORM).filter(
                or_(ExerciseLibraryORM.is_public == True, ExerciseLibraryORM.trainer_id == trainer.id)  # noqa: E712
            )
        if category:
            query = query.filter(ExerciseLibraryORM.category == category)
        if search:
            query = query.filter(ExerciseLibraryORM.name.ilike(f"%{search.strip()}%"))

        exercises = query.order_by(ExerciseLibraryORM.name.asc()).all()
        return [ExerciseOut.model_validate(ex) for ex in exercises]

    def _own_exercise(self, trainer_id: int, exercise_id: int) -> ExerciseLibraryORM:
        # Public or other trainers' exercises are not editable and reported as missing
        exercise = self.db.query(ExerciseLibraryORM).filter(
            ExerciseLibraryORM.id == exercise_id,
            ExerciseLibraryORM.trainer_id == trainer_id,
        ).first()
        if not exercise:
            raise NotFoundError("Exercise not found")
        return exercise

    def create_exercise(self, user_id: int, data: ExerciseCreate) -> ExerciseOut:
        """Create a new personal exercise."""
        try:
            trainer = get_trainer_profile(self.db, user_id)
            exercise = ExerciseLibraryORM(
                trainer_id=trainer.id,
                is_public=False,
                is_verified=False,
                usage_count=0,
                **data.model_dump(),
            )
            self.db.add(exercise)
            self.db.commit()
            self.db.refresh(exercise)
            logger.info(f"Trainer {trainer.id} created exercise {exercise.id} '{exercise.name}'")
            return ExerciseOut.model_validate(exercise)

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            handle_db_error(self.db, "create exercise", e)

    def update_exercise(self, user_id: int, exercise_id: int, data: ExerciseUpdate) -> ExerciseOut:
        try:
            trainer = get_trainer_profile(self.db, user_id)
            exercise = self._own_exercise(trainer.id, exercise_id)

            for field, value in data.model_dump(exclude_unset=True).items():
                if value is not None:
                    setattr(exercise, field, value)

            self.db.commit()
            self.db.refresh(exercise)
            return ExerciseOut.model_validate(exercise)

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            handle_db_error(self.db, "update exercise", e)

    def delete_exercise(self, user_id: int, exercise_id: int) -> None:
        try:
            trainer = get_trainer_profile(self.db, user_id)
            exercise = self._own_exercise(trainer.id, exercise_id)
            # Logged sessions keep their copy of the name
            self.db.query(SessionExerciseORM).filter(
                SessionExerciseORM.exercise_library_id == exercise.id,
            ).update({"exercise_library_id": None}, synchronize_session=False)
            self.db.delete(exercise)
            self.db.commit()
            logger.info(f"Trainer {trainer.id} deleted exercise {exercise_id}")

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            handle_db_error(self.db, "delete exercise", e)

    def get_categories(self) -> List[CategoryCount]:
        """Public exercise categories with how many exercises each holds."""
        rows = self.db.query(
            ExerciseLibraryORM.category, func.count(ExerciseLibraryORM.id)
        ).filter(
            ExerciseLibraryORM.is_public == True  # noqa: E712
        ).group_by(ExerciseLibraryORM.category).order_by(ExerciseLibraryORM.category.asc()).all()
        return [CategoryCount(category=category, count=count) for category, count in rows]


def get_exercise_service(db: Session = Depends(get_db)) -> ExerciseService:
    """Dependency injection helper."""
    return ExerciseService(db)
