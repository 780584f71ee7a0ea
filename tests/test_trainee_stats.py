from datetime import date, datetime, time, timedelta

from models_orm import ProgramAssignmentORM, ProgramORM, ScheduleORM, ScheduleStatus, TraineeORM
from service_modules.trainee_service import TraineeService, collect_trainee_stats, recompute_trainee_stats


def add_schedules(db, trainer, trainee, status, days_ago, duration=60):
    for offset in days_ago:
        db.add(ScheduleORM(
            trainer_id=trainer.id,
            trainee_id=trainee.id,
            date=date.today() - timedelta(days=offset),
            time=time(7, 0),
            duration=duration,
            title="Session",
            status=status,
            planned_exercises=[],
        ))


def test_zero_history_gives_all_zero_stats(client, trainee, headers_for):
    response = client.get("/api/v1/trainee/stats", headers=headers_for(trainee))
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["totalSessions"] == 0
    assert data["completedSessions"] == 0
    assert data["cancelledSessions"] == 0
    assert data["upcomingSessions"] == 0
    assert data["totalWorkoutHours"] == 0
    assert data["currentStreak"] == 0
    assert data["longestStreak"] == 0
    assert data["lastSessionDate"] is None
    assert data["currentProgram"] is None
    assert data["recentAchievements"] == []


def test_counts_and_workout_hours(db, trainer, trainee):
    # 97 x 90 + 120 = 8850 completed minutes
    add_schedules(db, trainer, trainee, ScheduleStatus.COMPLETED, range(10, 107), duration=90)
    add_schedules(db, trainer, trainee, ScheduleStatus.COMPLETED, [200], duration=120)
    add_schedules(db, trainer, trainee, ScheduleStatus.CANCELLED, range(300, 320), duration=45)
    add_schedules(db, trainer, trainee, ScheduleStatus.NO_SHOW, range(400, 406), duration=30)
    db.commit()

    stats = TraineeService(db).get_stats(trainee.id)
    assert stats.total_sessions == 124
    assert stats.completed_sessions == 98
    assert stats.cancelled_sessions == 20
    assert stats.total_workout_hours == 147.5
    # 97 consecutive days ending ten days ago
    assert stats.longest_streak == 97
    assert stats.current_streak == 0


def test_current_streak_and_upcoming(db, trainer, trainee, make_schedule):
    add_schedules(db, trainer, trainee, ScheduleStatus.COMPLETED, [1, 2, 3, 6])
    db.commit()
    make_schedule(trainer, trainee, date.today() + timedelta(days=2))
    make_schedule(trainer, trainee, date.today() + timedelta(days=4), status=ScheduleStatus.CONFIRMED)

    result = collect_trainee_stats(db, trainee.id)
    assert result["current_streak"] == 3
    assert result["longest_streak"] == 3
    assert result["upcoming_sessions"] == 2
    assert result["last_session_date"] == date.today() - timedelta(days=1)


def test_stats_pass_midnight_boundary(db, trainer, trainee):
    add_schedules(db, trainer, trainee, ScheduleStatus.COMPLETED, [0, 1])
    db.commit()
    later = datetime.combine(date.today() + timedelta(days=2), time(9, 0))
    assert collect_trainee_stats(db, trainee.id, now=later)["current_streak"] == 0


def test_recompute_is_idempotent(db, trainer, trainee):
    add_schedules(db, trainer, trainee, ScheduleStatus.COMPLETED, [0, 1], duration=30)
    db.commit()

    first = recompute_trainee_stats(db, trainee)
    second = recompute_trainee_stats(db, trainee)
    db.commit()
    assert first == second

    row = db.query(TraineeORM).filter(TraineeORM.id == trainee.id).one()
    assert row.completed_sessions == 2
    assert row.current_streak == 2
    assert row.total_workout_hours == 1.0


def test_current_program_summary(db, trainer, trainee):
    program = ProgramORM(trainer_id=trainer.id, name="Base", total_weeks=4, sessions_per_week=3, status="active")
    db.add(program)
    db.flush()
    db.add(ProgramAssignmentORM(
        program_id=program.id,
        trainee_id=trainee.id,
        start_date=date.today(),
        end_date=date.today() + timedelta(weeks=4),
        total_sessions=12,
        sessions_completed=3,
        progress_percentage=25.0,
        status="active",
    ))
    db.commit()

    summary = TraineeService(db).get_stats(trainee.id).current_program
    assert summary.name == "Base"
    assert summary.total_sessions == 12
    assert summary.progress_percentage == 25.0
