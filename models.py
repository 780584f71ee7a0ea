import re
from datetime import date as Date, datetime, time as Time
from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from models_orm import Role, ScheduleStatus

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

FitnessLevel = Literal["beginner", "intermediate", "advanced"]
Gender = Literal["male", "female", "other"]
MetricType = Literal["weight", "body_fat", "muscle_mass", "measurement"]


class CamelModel(BaseModel):
    """Base for every request/response body: snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def _normalize_email(value: str) -> str:
    value = value.strip().lower()
    if not EMAIL_RE.match(value):
        raise ValueError("invalid email address")
    return value


Email = Annotated[str, AfterValidator(_normalize_email)]


# --- AUTH ---
class RegisterRequest(CamelModel):
    email: Email
    password: str = Field(min_length=8, max_length=128)
    name: str = Field(min_length=2, max_length=255)
    role: Literal["trainer", "trainee"]
    phone_number: Optional[str] = None


class LoginRequest(CamelModel):
    email: Email
    password: str


class RefreshRequest(CamelModel):
    refresh_token: Optional[str] = None


class UserOut(CamelModel):
    id: int
    email: str
    name: str
    role: Role
    profile_image: Optional[str] = None
    phone_number: Optional[str] = None
    date_of_birth: Optional[Date] = None
    gender: Optional[str] = None
    email_verified: bool = False
    is_active: bool = True
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class TokenPair(CamelModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserOut


# --- PEOPLE ---
class PersonRef(CamelModel):
    id: int
    name: str
    profile_image: Optional[str] = None


class TrainerOut(CamelModel):
    id: int
    user_id: int
    name: str
    email: Optional[str] = None
    profile_image: Optional[str] = None
    bio: Optional[str] = None
    specialization: List[str] = []
    certifications: List[str] = []
    experience_years: int = 0
    rating: float = 0.0
    total_ratings: int = 0
    total_clients: int = 0
    availability: Optional[str] = None
    working_hours: Optional[Dict[str, Any]] = None
    instagram_url: Optional[str] = None
    facebook_url: Optional[str] = None
    youtube_url: Optional[str] = None


class TraineeOut(CamelModel):
    id: int
    user_id: int
    trainer_id: Optional[int] = None
    name: str
    email: str
    phone_number: Optional[str] = None
    profile_image: Optional[str] = None
    date_of_birth: Optional[Date] = None
    gender: Optional[str] = None
    height: Optional[float] = None
    weight: Optional[float] = None
    goals: List[str] = []
    fitness_level: Optional[str] = None
    medical_notes: Optional[str] = None
    injuries: List[str] = []
    allergies: List[str] = []
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    emergency_contact_relationship: Optional[str] = None
    join_date: Optional[Date] = None
    membership_type: Optional[str] = None
    membership_expiry: Optional[Date] = None
    status: str = "active"
    total_sessions: int = 0
    completed_sessions: int = 0
    current_streak: int = 0
    last_session_date: Optional[Date] = None


class ClientDetail(TraineeOut):
    stats: Optional["TraineeStats"] = None


class ClientCreate(CamelModel):
    email: Email
    name: str = Field(min_length=2, max_length=255)
    password: str = Field(min_length=8, max_length=128)
    height: Optional[float] = Field(None, ge=0)
    weight: Optional[float] = Field(None, ge=0)
    goals: List[str] = []
    fitness_level: Optional[FitnessLevel] = None
    medical_notes: Optional[str] = None
    injuries: List[str] = []
    allergies: List[str] = []
    phone_number: Optional[str] = None
    date_of_birth: Optional[Date] = None
    gender: Optional[Gender] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    emergency_contact_relationship: Optional[str] = None


class ClientUpdate(CamelModel):
    height: Optional[float] = Field(None, ge=0)
    weight: Optional[float] = Field(None, ge=0)
    goals: Optional[List[str]] = None
    fitness_level: Optional[FitnessLevel] = None
    medical_notes: Optional[str] = None
    injuries: Optional[List[str]] = None
    allergies: Optional[List[str]] = None
    phone_number: Optional[str] = None
    date_of_birth: Optional[Date] = None
    gender: Optional[Gender] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    emergency_contact_relationship: Optional[str] = None
    membership_type: Optional[str] = None
    membership_expiry: Optional[Date] = None
    status: Optional[Literal["active", "inactive", "suspended"]] = None


class TraineeProfileUpdate(CamelModel):
    """Fields a trainee may change on their own profile."""
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    phone_number: Optional[str] = None
    profile_image: Optional[str] = None
    date_of_birth: Optional[Date] = None
    gender: Optional[Gender] = None
    height: Optional[float] = Field(None, ge=0)
    weight: Optional[float] = Field(None, ge=0)
    goals: Optional[List[str]] = None
    fitness_level: Optional[FitnessLevel] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    emergency_contact_relationship: Optional[str] = None


# --- LOCATIONS ---
class LocationOut(CamelModel):
    id: int
    name: str
    address: Optional[str] = None
    floor: Optional[str] = None
    building: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    map_url: Optional[str] = None
    opening_hours: Optional[str] = None
    operating_days: List[str] = []
    facilities: List[str] = []
    images: List[str] = []


class LocationRef(CamelModel):
    id: int
    name: str
    address: Optional[str] = None
    floor: Optional[str] = None


# --- SCHEDULES ---
class ScheduleCreate(CamelModel):
    trainee_id: int
    location_id: Optional[int] = None
    program_assignment_id: Optional[int] = None
    date: Date
    time: Time
    duration: int = Field(ge=1, le=480)
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    session_type: Optional[str] = None
    planned_exercises: List[str] = []
    notes: Optional[str] = None


class ScheduleUpdate(CamelModel):
    location_id: Optional[int] = None
    date: Optional[Date] = None
    time: Optional[Time] = None
    duration: Optional[int] = Field(None, ge=1, le=480)
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    session_type: Optional[str] = None
    planned_exercises: Optional[List[str]] = None
    status: Optional[ScheduleStatus] = None
    notes: Optional[str] = None


class ScheduleOut(CamelModel):
    id: int
    trainer_id: int
    trainee_id: int
    date: Date
    time: Time
    duration: int
    title: str
    description: Optional[str] = None
    status: ScheduleStatus
    session_type: Optional[str] = None
    planned_exercises: List[str] = []
    notes: Optional[str] = None
    trainer: Optional[PersonRef] = None
    trainee: Optional[PersonRef] = None
    location: Optional[LocationRef] = None
    program_assignment_id: Optional[int] = None
    session_card_id: Optional[int] = None
    cancellation_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @field_serializer("time")
    def _format_time(self, value: Time) -> str:
        return value.strftime("%H:%M")


class CalendarDay(CamelModel):
    date: Date
    day_name: str
    is_today: bool
    has_session: bool
    session_count: int


class UpcomingSchedules(CamelModel):
    days: int
    sessions: List[ScheduleOut]
    calendar: List[CalendarDay]


# --- SESSION CARDS ---
class ExerciseSetIn(CamelModel):
    set_number: Optional[int] = Field(None, ge=1)
    reps: Optional[int] = Field(None, ge=0)
    weight: Optional[float] = Field(None, ge=0)
    duration: Optional[int] = Field(None, ge=0)
    distance: Optional[float] = Field(None, ge=0)
    rest_duration: Optional[int] = Field(None, ge=0)
    completed: bool = True
    rpe: Optional[int] = Field(None, ge=1, le=10)
    notes: Optional[str] = None


class SessionExerciseIn(CamelModel):
    exercise_library_id: Optional[int] = None
    name: str = Field(min_length=1, max_length=255)
    category: Optional[str] = None
    exercise_order: Optional[int] = Field(None, ge=1)
    notes: Optional[str] = None
    form_notes: Optional[str] = None
    is_pr: bool = Field(False, alias="isPR")
    pr_note: Optional[str] = None
    sets: List[ExerciseSetIn] = Field(min_length=1)


class SessionCardCreate(CamelModel):
    schedule_id: int
    duration: Optional[int] = Field(None, ge=1)
    overall_feedback: Optional[str] = None
    next_session_goals: List[str] = []
    trainer_rating: Optional[int] = Field(None, ge=1, le=5)
    trainee_rating: Optional[int] = Field(None, ge=1, le=5)
    exercises: List[SessionExerciseIn] = Field(min_length=1)


class SessionCardUpdate(CamelModel):
    duration: Optional[int] = Field(None, ge=1)
    overall_feedback: Optional[str] = None
    next_session_goals: Optional[List[str]] = None
    trainer_rating: Optional[int] = Field(None, ge=1, le=5)
    trainee_rating: Optional[int] = Field(None, ge=1, le=5)


class ExerciseSetOut(CamelModel):
    id: int
    set_number: int
    reps: Optional[int] = None
    weight: Optional[float] = None
    duration: Optional[int] = None
    distance: Optional[float] = None
    rest_duration: Optional[int] = None
    completed: bool = True
    rpe: Optional[int] = None
    notes: Optional[str] = None


class SessionExerciseOut(CamelModel):
    id: int
    exercise_library_id: Optional[int] = None
    name: str
    category: Optional[str] = None
    exercise_order: int
    notes: Optional[str] = None
    form_notes: Optional[str] = None
    total_sets: int = 0
    total_reps: int = 0
    total_weight: float = 0.0
    total_volume: float = 0.0
    is_pr: bool = Field(False, alias="isPR")
    pr_note: Optional[str] = None
    sets: List[ExerciseSetOut] = []


class SessionCardSummary(CamelModel):
    id: int
    schedule_id: int
    date: Date
    title: str
    duration: int
    trainer: Optional[PersonRef] = None
    trainee: Optional[PersonRef] = None
    total_exercises: int = 0
    total_sets: int = 0
    total_volume: float = 0.0
    trainer_rating: Optional[int] = None
    trainee_rating: Optional[int] = None
    created_at: Optional[datetime] = None


class SessionCardOut(SessionCardSummary):
    overall_feedback: Optional[str] = None
    next_session_goals: List[str] = []
    exercises: List[SessionExerciseOut] = []


# --- PROGRAMS ---
class ProgramCreate(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    total_weeks: int = Field(ge=1, le=104)
    sessions_per_week: int = Field(ge=1, le=14)
    goals: List[str] = []
    target_fitness_level: Optional[FitnessLevel] = None
    weekly_schedule: Optional[List[Dict[str, Any]]] = None
    status: Literal["draft", "active", "archived"] = "draft"


class ProgramUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    total_weeks: Optional[int] = Field(None, ge=1, le=104)
    sessions_per_week: Optional[int] = Field(None, ge=1, le=14)
    goals: Optional[List[str]] = None
    target_fitness_level: Optional[FitnessLevel] = None
    weekly_schedule: Optional[List[Dict[str, Any]]] = None
    status: Optional[Literal["draft", "active", "archived"]] = None


class ProgramAssign(CamelModel):
    trainee_id: int
    start_date: Date
    notes: Optional[str] = None


class ProgramAssignmentOut(CamelModel):
    id: int
    program_id: int
    trainee_id: int
    start_date: Date
    end_date: Date
    current_week: int = 1
    progress_percentage: float = 0.0
    sessions_completed: int = 0
    total_sessions: int
    status: str
    notes: Optional[str] = None
    progress_notes: List[Dict[str, Any]] = []


class ProgramOut(CamelModel):
    id: int
    trainer_id: int
    name: str
    description: Optional[str] = None
    total_weeks: int
    sessions_per_week: int
    goals: List[str] = []
    target_fitness_level: Optional[str] = None
    weekly_schedule: Optional[List[Dict[str, Any]]] = None
    status: str
    total_assignments: int = 0
    completion_rate: float = 0.0
    trainer: Optional[PersonRef] = None
    assignment: Optional[ProgramAssignmentOut] = None
    active_assignments: Optional[List[ProgramAssignmentOut]] = None
    created_at: Optional[datetime] = None


# --- EXERCISE LIBRARY ---
class ExerciseCreate(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    category: str = Field(min_length=1, max_length=50)
    description: Optional[str] = None
    muscle_groups: List[str] = []
    equipment: List[str] = []
    difficulty: Optional[FitnessLevel] = None
    instructions: List[str] = []
    video_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    images: List[str] = []


class ExerciseUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = None
    muscle_groups: Optional[List[str]] = None
    equipment: Optional[List[str]] = None
    difficulty: Optional[FitnessLevel] = None
    instructions: Optional[List[str]] = None
    video_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    images: Optional[List[str]] = None


class ExerciseOut(CamelModel):
    id: int
    trainer_id: Optional[int] = None
    name: str
    category: str
    description: Optional[str] = None
    muscle_groups: List[str] = []
    equipment: List[str] = []
    difficulty: Optional[str] = None
    instructions: List[str] = []
    video_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    images: List[str] = []
    is_public: bool = False
    is_verified: bool = False
    usage_count: int = 0


class CategoryCount(CamelModel):
    category: str
    count: int


# --- METRICS ---
class MetricCreate(CamelModel):
    date: Date
    type: MetricType
    value: float = Field(gt=0)
    unit: str = Field(min_length=1, max_length=10)
    measurement_type: Optional[str] = None
    notes: Optional[str] = None


class MetricOut(CamelModel):
    id: int
    trainee_id: int
    date: Date
    type: str
    value: float
    unit: str
    measurement_type: Optional[str] = None
    notes: Optional[str] = None
    recorded_by: Optional[int] = None
    created_at: Optional[datetime] = None


# --- NOTIFICATIONS ---
class NotificationOut(CamelModel):
    id: int
    type: str
    title: str
    message: str
    related_id: Optional[int] = None
    related_type: Optional[str] = None
    action_url: Optional[str] = None
    priority: str = "medium"
    is_read: bool = False
    read_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


# --- STATS ---
class AchievementOut(CamelModel):
    id: int
    type: str
    title: str
    description: Optional[str] = None
    badge_icon: Optional[str] = None
    badge_color: Optional[str] = None
    value: Optional[int] = None
    achieved_at: datetime


class CurrentProgramSummary(CamelModel):
    id: int
    name: str
    progress_percentage: float
    current_week: int
    total_weeks: int
    sessions_completed: int
    total_sessions: int


class TraineeStats(CamelModel):
    total_sessions: int = 0
    completed_sessions: int = 0
    cancelled_sessions: int = 0
    upcoming_sessions: int = 0
    total_workout_hours: float = 0.0
    current_streak: int = 0
    longest_streak: int = 0
    average_sessions_per_week: float = 0.0
    last_session_date: Optional[Date] = None
    current_program: Optional[CurrentProgramSummary] = None
    recent_achievements: List[AchievementOut] = []


# --- TRAINER DASHBOARD & ANALYTICS ---
class RecentClient(CamelModel):
    id: int
    name: str
    profile_image: Optional[str] = None
    last_session: Optional[Date] = None


class DashboardStats(CamelModel):
    total_clients: int = 0
    active_clients: int = 0
    total_sessions: int = 0
    completed_sessions: int = 0
    upcoming_sessions: int = 0
    average_rating: float = 0.0
    today_sessions: List[ScheduleOut] = []
    week_sessions: List[ScheduleOut] = []
    recent_clients: List[RecentClient] = []


class WeeklyCount(CamelModel):
    week_start: Date
    count: int


class AnalyticsOverview(CamelModel):
    average_session_rate: float = 0.0
    client_retention_rate: float = 0.0
    sessions_per_week: List[WeeklyCount] = []
    client_growth: List[WeeklyCount] = []
    popular_exercises: List[str] = []


class ProgressPoint(CamelModel):
    date: Date
    value: float


class TopExercise(CamelModel):
    name: str
    max_weight: float = 0.0
    total_volume: float = 0.0


class ClientAnalytics(CamelModel):
    trainee_id: int
    name: str
    total_sessions: int = 0
    attendance_rate: float = 0.0
    average_session_duration: int = 0
    weight_progress: List[ProgressPoint] = []
    body_fat_progress: List[ProgressPoint] = []
    top_exercises: List[TopExercise] = []


ClientDetail.model_rebuild()
