"""
Services package - one service class per resource.

Each service takes the request's database session in its constructor; the
get_*_service helpers wire that up for FastAPI's Depends.
"""
from .admin_service import AdminService, get_admin_service
from .auth_service import AuthService, get_auth_service
from .client_service import ClientService, get_client_service
from .exercise_service import ExerciseService, get_exercise_service
from .location_service import LocationService, get_location_service
from .metric_service import MetricService, get_metric_service
from .notification_service import NotificationService, get_notification_service
from .program_service import ProgramService, get_program_service
from .schedule_service import ScheduleService, get_schedule_service
from .session_service import SessionService, get_session_service
from .trainee_service import TraineeService, get_trainee_service
from .trainer_service import TrainerService, get_trainer_service

__all__ = [
    'AdminService', 'get_admin_service',
    'AuthService', 'get_auth_service',
    'ClientService', 'get_client_service',
    'ExerciseService', 'get_exercise_service',
    'LocationService', 'get_location_service',
    'MetricService', 'get_metric_service',
    'NotificationService', 'get_notification_service',
    'ProgramService', 'get_program_service',
    'ScheduleService', 'get_schedule_service',
    'SessionService', 'get_session_service',
    'TraineeService', 'get_trainee_service',
    'TrainerService', 'get_trainer_service',
]
