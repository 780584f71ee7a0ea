from datetime import date, time, timedelta

import pytest
from fastapi.testclient import TestClient

from auth import create_access_token, get_password_hash
from config import Settings
from main import create_app
from models_orm import Role, ScheduleORM, ScheduleStatus, TraineeORM, TrainerORM, UserORM

PASSWORD = "Str0ngPass"


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite://",
        jwt_secret="test-secret-key",
        bcrypt_rounds=10,
        log_level="WARNING",
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def db(app):
    session = app.state.session_factory()
    yield session
    session.close()


def make_user(db, role, email, name="Test User", password=PASSWORD):
    user = UserORM(
        email=email,
        password_hash=get_password_hash(password, 10),
        name=name,
        role=role,
        is_active=True,
    )
    db.add(user)
    db.flush()
    return user


@pytest.fixture
def make_trainer(db):
    def _make(email="coach@example.com", name="Coach Carter"):
        user = make_user(db, Role.TRAINER, email, name)
        trainer = TrainerORM(user_id=user.id, specialization=["strength"], certifications=[])
        db.add(trainer)
        db.commit()
        return trainer
    return _make


@pytest.fixture
def make_trainee(db):
    def _make(email="trainee@example.com", name="Tina Trainee", trainer=None):
        user = make_user(db, Role.TRAINEE, email, name)
        trainee = TraineeORM(
            user_id=user.id,
            trainer_id=trainer.id if trainer else None,
            goals=[],
            injuries=[],
            allergies=[],
            status="active",
        )
        db.add(trainee)
        db.commit()
        return trainee
    return _make


@pytest.fixture
def make_schedule(db):
    def _make(trainer, trainee, day, at=time(10, 0), duration=60, status=ScheduleStatus.SCHEDULED, title="Session"):
        schedule = ScheduleORM(
            trainer_id=trainer.id,
            trainee_id=trainee.id,
            date=day,
            time=at,
            duration=duration,
            title=title,
            status=status,
            planned_exercises=[],
        )
        db.add(schedule)
        db.commit()
        return schedule
    return _make


@pytest.fixture
def headers_for(db, settings):
    """Bearer headers for a user, trainer profile or trainee profile."""
    def _headers(subject):
        user = subject if isinstance(subject, UserORM) else subject.user
        return {"Authorization": f"Bearer {create_access_token(user, settings)}"}
    return _headers


@pytest.fixture
def trainer(make_trainer):
    return make_trainer()


@pytest.fixture
def trainee(make_trainee, trainer):
    return make_trainee(trainer=trainer)


@pytest.fixture
def admin(db):
    user = make_user(db, Role.ADMIN, "admin@example.com", "Ada Admin")
    db.commit()
    return user


@pytest.fixture
def tomorrow():
    return date.today() + timedelta(days=1)
