import enum
from datetime import datetime

from sqlalchemy import (
    JSON, Boolean, Column, Date, DateTime, Enum, Float, ForeignKey, Integer,
    String, Text, Time, UniqueConstraint,
)
from sqlalchemy.orm import relationship

from database import Base


class Role(str, enum.Enum):
    TRAINER = "trainer"
    TRAINEE = "trainee"
    ADMIN = "admin"


class ScheduleStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


# Statuses that still hold a slot in the trainer's calendar
OPEN_STATUSES = (ScheduleStatus.SCHEDULED, ScheduleStatus.CONFIRMED)


def _enum(cls, length=20):
    return Enum(
        cls,
        native_enum=False,
        length=length,
        values_callable=lambda members: [m.value for m in members],
    )


# --- CORE MODELS ---

class UserORM(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=True)  # NULL for OAuth-only users
    name = Column(String(255), nullable=False)
    role = Column(_enum(Role), index=True, nullable=False)
    profile_image = Column(Text, nullable=True)
    phone_number = Column(String(20), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    gender = Column(String(10), nullable=True)  # male, female, other

    # OAuth linkage
    oauth_provider = Column(String(50), nullable=True)  # google, facebook
    oauth_id = Column(String(255), nullable=True, index=True)

    email_verified = Column(Boolean, default=False)
    email_verified_at = Column(DateTime, nullable=True)
    is_active = Column(Boolean, default=True, index=True)
    last_login_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    trainer = relationship("TrainerORM", back_populates="user", uselist=False)
    trainee = relationship("TraineeORM", back_populates="user", uselist=False)


class TrainerORM(Base):
    __tablename__ = "trainers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)

    bio = Column(Text, nullable=True)
    specialization = Column(JSON, default=list)
    certifications = Column(JSON, default=list)
    experience_years = Column(Integer, default=0)

    # Cached stats
    rating = Column(Float, default=0.0)
    total_ratings = Column(Integer, default=0)
    total_clients = Column(Integer, default=0)

    availability = Column(String(20), default="available")  # available, busy, unavailable
    working_hours = Column(JSON, nullable=True)  # {"monday": "09:00-18:00"}

    instagram_url = Column(String(255), nullable=True)
    facebook_url = Column(String(255), nullable=True)
    youtube_url = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    user = relationship("UserORM", back_populates="trainer")
    trainees = relationship("TraineeORM", back_populates="trainer")

    @property
    def name(self):
        return self.user.name if self.user else None

    @property
    def email(self):
        return self.user.email if self.user else None

    @property
    def profile_image(self):
        return self.user.profile_image if self.user else None


class TraineeORM(Base):
    __tablename__ = "trainees"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    trainer_id = Column(Integer, ForeignKey("trainers.id"), index=True, nullable=True)  # NULL = unassigned

    # Physical info
    height = Column(Float, nullable=True)  # cm
    weight = Column(Float, nullable=True)  # kg

    goals = Column(JSON, default=list)
    fitness_level = Column(String(20), nullable=True)  # beginner, intermediate, advanced

    medical_notes = Column(Text, nullable=True)
    injuries = Column(JSON, default=list)
    allergies = Column(JSON, default=list)

    emergency_contact_name = Column(String(255), nullable=True)
    emergency_contact_phone = Column(String(20), nullable=True)
    emergency_contact_relationship = Column(String(50), nullable=True)

    join_date = Column(Date, default=lambda: datetime.now().date())
    membership_type = Column(String(50), nullable=True)  # monthly, quarterly, yearly
    membership_expiry = Column(Date, nullable=True)
    status = Column(String(20), default="active", index=True)  # active, inactive, suspended

    # Cached stats, regenerated from schedules by the stats service
    total_sessions = Column(Integer, default=0)
    completed_sessions = Column(Integer, default=0)
    cancelled_sessions = Column(Integer, default=0)
    current_streak = Column(Integer, default=0)
    longest_streak = Column(Integer, default=0)
    total_workout_hours = Column(Float, default=0.0)
    last_session_date = Column(Date, nullable=True)

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    user = relationship("UserORM", back_populates="trainee")
    trainer = relationship("TrainerORM", back_populates="trainees")

    # Contact details live on the user row
    @property
    def name(self):
        return self.user.name if self.user else None

    @property
    def email(self):
        return self.user.email if self.user else None

    @property
    def phone_number(self):
        return self.user.phone_number if self.user else None

    @property
    def profile_image(self):
        return self.user.profile_image if self.user else None

    @property
    def date_of_birth(self):
        return self.user.date_of_birth if self.user else None

    @property
    def gender(self):
        return self.user.gender if self.user else None


class LocationORM(Base):
    __tablename__ = "locations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    address = Column(Text, nullable=True)
    floor = Column(String(10), nullable=True)
    building = Column(String(255), nullable=True)
    phone_number = Column(String(20), nullable=True)
    email = Column(String(255), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    map_url = Column(Text, nullable=True)
    opening_hours = Column(String(50), nullable=True)  # "06:00-22:00"
    operating_days = Column(JSON, default=list)
    facilities = Column(JSON, default=list)
    images = Column(JSON, default=list)
    is_active = Column(Boolean, default=True, index=True)

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)


# --- PROGRAMS ---

class ProgramORM(Base):
    __tablename__ = "programs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    trainer_id = Column(Integer, ForeignKey("trainers.id"), index=True, nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    total_weeks = Column(Integer, nullable=False)
    sessions_per_week = Column(Integer, nullable=False)
    goals = Column(JSON, default=list)
    target_fitness_level = Column(String(20), nullable=True)
    weekly_schedule = Column(JSON, nullable=True)  # [{"day": "monday", "focus": "...", "duration": 60}]
    status = Column(String(20), default="draft")  # draft, active, archived

    total_assignments = Column(Integer, default=0)
    completion_rate = Column(Float, default=0.0)

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    trainer = relationship("TrainerORM")
    assignments = relationship("ProgramAssignmentORM", back_populates="program")


class ProgramAssignmentORM(Base):
    __tablename__ = "program_assignments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    program_id = Column(Integer, ForeignKey("programs.id"), index=True, nullable=False)
    trainee_id = Column(Integer, ForeignKey("trainees.id"), index=True, nullable=False)

    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    current_week = Column(Integer, default=1)

    progress_percentage = Column(Float, default=0.0)
    sessions_completed = Column(Integer, default=0)
    total_sessions = Column(Integer, nullable=False)

    status = Column(String(20), default="active", index=True)  # active, completed, paused, cancelled
    notes = Column(Text, nullable=True)
    progress_notes = Column(JSON, default=list)  # [{"week": 1, "date": "...", "note": "...", "recordedBy": "..."}]

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    program = relationship("ProgramORM", back_populates="assignments")
    trainee = relationship("TraineeORM")


# --- SCHEDULES & SESSION CARDS ---

class ScheduleORM(Base):
    __tablename__ = "schedules"

    id = Column(Integer, primary_key=True, autoincrement=True)
    trainer_id = Column(Integer, ForeignKey("trainers.id"), index=True, nullable=False)
    trainee_id = Column(Integer, ForeignKey("trainees.id"), index=True, nullable=False)
    location_id = Column(Integer, ForeignKey("locations.id"), nullable=True)
    program_assignment_id = Column(Integer, ForeignKey("program_assignments.id"), nullable=True)

    date = Column(Date, index=True, nullable=False)
    time = Column(Time, nullable=False)
    duration = Column(Integer, nullable=False)  # minutes
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    session_type = Column(String(50), nullable=True)  # Strength Training, Cardio
    planned_exercises = Column(JSON, default=list)

    status = Column(_enum(ScheduleStatus), default=ScheduleStatus.SCHEDULED, index=True, nullable=False)

    notes = Column(Text, nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    cancelled_by = Column(Integer, nullable=True)  # user id

    session_card_id = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    trainer = relationship("TrainerORM")
    trainee = relationship("TraineeORM")
    location = relationship("LocationORM")


class SessionCardORM(Base):
    __tablename__ = "session_cards"

    id = Column(Integer, primary_key=True, autoincrement=True)
    schedule_id = Column(Integer, ForeignKey("schedules.id"), unique=True, nullable=False)
    trainer_id = Column(Integer, ForeignKey("trainers.id"), index=True, nullable=False)
    trainee_id = Column(Integer, ForeignKey("trainees.id"), index=True, nullable=False)

    date = Column(Date, index=True, nullable=False)
    title = Column(String(255), nullable=False)
    duration = Column(Integer, nullable=False)  # minutes

    overall_feedback = Column(Text, nullable=True)
    next_session_goals = Column(JSON, default=list)
    trainer_rating = Column(Integer, nullable=True)  # 1-5
    trainee_rating = Column(Integer, nullable=True)  # 1-5

    # Derived from child sets at write time
    total_exercises = Column(Integer, default=0)
    total_sets = Column(Integer, default=0)
    total_volume = Column(Float, default=0.0)  # kg

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    schedule = relationship("ScheduleORM")
    trainer = relationship("TrainerORM")
    trainee = relationship("TraineeORM")
    exercises = relationship(
        "SessionExerciseORM",
        back_populates="session_card",
        order_by="SessionExerciseORM.exercise_order",
        cascade="all, delete-orphan",
    )


class SessionExerciseORM(Base):
    __tablename__ = "session_exercises"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_card_id = Column(Integer, ForeignKey("session_cards.id"), index=True, nullable=False)
    exercise_library_id = Column(Integer, ForeignKey("exercise_library.id"), nullable=True)

    name = Column(String(255), nullable=False)
    category = Column(String(50), nullable=True)
    exercise_order = Column(Integer, nullable=False)
    notes = Column(Text, nullable=True)
    form_notes = Column(Text, nullable=True)

    total_sets = Column(Integer, default=0)
    total_reps = Column(Integer, default=0)
    total_weight = Column(Float, default=0.0)
    total_volume = Column(Float, default=0.0)

    is_pr = Column(Boolean, default=False)
    pr_note = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.now)

    session_card = relationship("SessionCardORM", back_populates="exercises")
    sets = relationship(
        "ExerciseSetORM",
        back_populates="session_exercise",
        order_by="ExerciseSetORM.set_number",
        cascade="all, delete-orphan",
    )


class ExerciseSetORM(Base):
    __tablename__ = "exercise_sets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_exercise_id = Column(Integer, ForeignKey("session_exercises.id"), index=True, nullable=False)
    set_number = Column(Integer, nullable=False)

    reps = Column(Integer, nullable=True)
    weight = Column(Float, nullable=True)  # kg
    duration = Column(Integer, nullable=True)  # seconds
    distance = Column(Float, nullable=True)  # km
    rest_duration = Column(Integer, nullable=True)  # seconds
    completed = Column(Boolean, default=True)
    rpe = Column(Integer, nullable=True)  # 1-10
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.now)

    session_exercise = relationship("SessionExerciseORM", back_populates="sets")


# --- EXERCISE LIBRARY (Public + Personal) ---

class ExerciseLibraryORM(Base):
    __tablename__ = "exercise_library"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # If trainer_id is NULL, it's a public exercise. If set, it belongs to that trainer.
    trainer_id = Column(Integer, ForeignKey("trainers.id"), index=True, nullable=True)

    name = Column(String(255), nullable=False, index=True)
    category = Column(String(50), nullable=False, index=True)
    description = Column(Text, nullable=True)
    muscle_groups = Column(JSON, default=list)
    equipment = Column(JSON, default=list)
    difficulty = Column(String(20), nullable=True)  # beginner, intermediate, advanced
    instructions = Column(JSON, default=list)
    video_url = Column(Text, nullable=True)
    thumbnail_url = Column(Text, nullable=True)
    images = Column(JSON, default=list)

    is_public = Column(Boolean, default=False)
    is_verified = Column(Boolean, default=False)
    usage_count = Column(Integer, default=0)

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)


# --- TRACKING ---

class MetricORM(Base):
    __tablename__ = "metrics"

    id = Column(Integer, primary_key=True, autoincrement=True)
    trainee_id = Column(Integer, ForeignKey("trainees.id"), index=True, nullable=False)

    date = Column(Date, index=True, nullable=False)
    type = Column(String(20), index=True, nullable=False)  # weight, body_fat, muscle_mass, measurement
    value = Column(Float, nullable=False)
    unit = Column(String(10), nullable=False)  # kg, %, cm
    measurement_type = Column(String(50), nullable=True)  # chest, waist, arms
    notes = Column(Text, nullable=True)
    recorded_by = Column(Integer, nullable=True)  # user id

    created_at = Column(DateTime, default=datetime.now)


class AchievementORM(Base):
    __tablename__ = "achievements"

    id = Column(Integer, primary_key=True, autoincrement=True)
    trainee_id = Column(Integer, ForeignKey("trainees.id"), index=True, nullable=False)
    type = Column(String(20), nullable=False)  # streak, milestone, pr, completion
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    badge_icon = Column(Text, nullable=True)
    badge_color = Column(String(7), nullable=True)
    value = Column(Integer, nullable=True)
    achieved_at = Column(DateTime, index=True, nullable=False)

    created_at = Column(DateTime, default=datetime.now)


class NotificationORM(Base):
    """Notifications for users (trainers, trainees, admins)."""
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)  # Who receives the notification
    type = Column(String(20), index=True, nullable=False)  # schedule, progress, achievement, system, message
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)

    related_id = Column(Integer, nullable=True)
    related_type = Column(String(50), nullable=True)
    action_url = Column(Text, nullable=True)
    priority = Column(String(20), default="medium")  # low, medium, high

    is_read = Column(Boolean, default=False, index=True)
    read_at = Column(DateTime, nullable=True)
    sent_via = Column(JSON, default=lambda: ["in_app"])

    created_at = Column(DateTime, default=datetime.now, index=True)


class RefreshTokenORM(Base):
    __tablename__ = "refresh_tokens"
    __table_args__ = (UniqueConstraint("jti", name="uq_refresh_tokens_jti"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    jti = Column(String(64), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    revoked_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.now)
