from datetime import date, timedelta

import pytest

from models_orm import (
    ExerciseLibraryORM, NotificationORM, ProgramAssignmentORM, ProgramORM, ScheduleORM,
    ScheduleStatus, TraineeORM, TrainerORM,
)


def card_payload(schedule_id, **extra):
    payload = {
        "scheduleId": schedule_id,
        "overallFeedback": "Solid work",
        "nextSessionGoals": ["Add 5kg to squat"],
        "exercises": [
            {
                "name": "Back Squat",
                "category": "strength",
                "isPR": True,
                "sets": [{"reps": 5, "weight": 100}, {"reps": 5, "weight": 110}],
            },
            {
                "name": "Plank",
                "category": "core",
                "sets": [{"duration": 60}],
            },
        ],
    }
    payload.update(extra)
    return payload


@pytest.fixture
def past_schedule(make_schedule, trainer, trainee):
    return make_schedule(trainer, trainee, date.today() - timedelta(days=1), status=ScheduleStatus.CONFIRMED)


@pytest.fixture
def assignment(db, trainer, trainee):
    program = ProgramORM(trainer_id=trainer.id, name="Strength", total_weeks=2, sessions_per_week=2, status="active")
    db.add(program)
    db.flush()
    row = ProgramAssignmentORM(
        program_id=program.id,
        trainee_id=trainee.id,
        start_date=date.today() - timedelta(days=7),
        end_date=date.today() + timedelta(days=7),
        total_sessions=4,
        status="active",
    )
    db.add(row)
    db.commit()
    return row


def test_create_session_card_derives_totals(client, trainer, past_schedule, headers_for):
    response = client.post("/api/v1/trainer/sessions", json=card_payload(past_schedule.id), headers=headers_for(trainer))
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["totalExercises"] == 2
    assert data["totalSets"] == 3
    assert data["totalVolume"] == 1050.0

    squat, plank = data["exercises"]
    assert squat["exerciseOrder"] == 1
    assert squat["totalReps"] == 10
    assert squat["totalWeight"] == 210.0
    assert squat["isPR"] is True
    assert [s["setNumber"] for s in squat["sets"]] == [1, 2]
    assert plank["totalVolume"] == 0.0


def test_session_card_completes_schedule_and_updates_stats(client, db, trainer, trainee, past_schedule, headers_for):
    response = client.post(
        "/api/v1/trainer/sessions",
        json=card_payload(past_schedule.id, traineeRating=4),
        headers=headers_for(trainer),
    )
    card_id = response.json()["data"]["id"]

    db.expire_all()
    schedule = db.query(ScheduleORM).filter(ScheduleORM.id == past_schedule.id).one()
    assert schedule.status == ScheduleStatus.COMPLETED
    assert schedule.session_card_id == card_id

    profile = db.query(TraineeORM).filter(TraineeORM.id == trainee.id).one()
    assert profile.completed_sessions == 1
    assert profile.current_streak == 1
    assert profile.total_workout_hours == 1.0

    coach = db.query(TrainerORM).filter(TrainerORM.id == trainer.id).one()
    assert coach.rating == 4.0
    assert coach.total_ratings == 1

    notification = db.query(NotificationORM).filter(NotificationORM.user_id == trainee.user_id).one()
    assert notification.type == "progress"
    assert notification.related_type == "session_card"


def test_session_card_advances_program(client, db, trainer, past_schedule, assignment, headers_for):
    client.post("/api/v1/trainer/sessions", json=card_payload(past_schedule.id), headers=headers_for(trainer))

    db.expire_all()
    row = db.query(ProgramAssignmentORM).filter(ProgramAssignmentORM.id == assignment.id).one()
    assert row.sessions_completed == 1
    assert row.progress_percentage == 25.0
    assert db.query(ScheduleORM).filter(ScheduleORM.id == past_schedule.id).one().program_assignment_id == assignment.id


def test_second_card_for_schedule_conflicts(client, trainer, past_schedule, headers_for):
    headers = headers_for(trainer)
    assert client.post("/api/v1/trainer/sessions", json=card_payload(past_schedule.id), headers=headers).status_code == 201
    response = client.post("/api/v1/trainer/sessions", json=card_payload(past_schedule.id), headers=headers)
    assert response.status_code == 409


def test_cancelled_schedule_cannot_be_logged(client, db, trainer, trainee, make_schedule, headers_for):
    schedule = make_schedule(trainer, trainee, date.today(), status=ScheduleStatus.CANCELLED)
    response = client.post("/api/v1/trainer/sessions", json=card_payload(schedule.id), headers=headers_for(trainer))
    assert response.status_code == 409


def test_failed_card_rolls_back_everything(client, db, trainer, past_schedule, headers_for):
    payload = card_payload(past_schedule.id)
    payload["exercises"][1]["exerciseLibraryId"] = 9999
    response = client.post("/api/v1/trainer/sessions", json=payload, headers=headers_for(trainer))
    assert response.status_code == 400

    db.expire_all()
    schedule = db.query(ScheduleORM).filter(ScheduleORM.id == past_schedule.id).one()
    assert schedule.status == ScheduleStatus.CONFIRMED
    assert schedule.session_card_id is None


def test_empty_exercise_list_rejected(client, trainer, past_schedule, headers_for):
    response = client.post(
        "/api/v1/trainer/sessions", json=card_payload(past_schedule.id, exercises=[]), headers=headers_for(trainer)
    )
    assert response.status_code == 422


def test_library_usage_is_counted(client, db, trainer, past_schedule, headers_for):
    squat = ExerciseLibraryORM(name="Back Squat", category="strength", is_public=True)
    db.add(squat)
    db.commit()
    payload = card_payload(past_schedule.id)
    payload["exercises"][0]["exerciseLibraryId"] = squat.id

    assert client.post("/api/v1/trainer/sessions", json=payload, headers=headers_for(trainer)).status_code == 201
    db.expire_all()
    assert db.query(ExerciseLibraryORM).filter(ExerciseLibraryORM.id == squat.id).one().usage_count == 1


def test_delete_card_reopens_schedule(client, db, trainer, trainee, past_schedule, assignment, headers_for):
    headers = headers_for(trainer)
    card_id = client.post("/api/v1/trainer/sessions", json=card_payload(past_schedule.id), headers=headers).json()["data"]["id"]

    assert client.delete(f"/api/v1/trainer/sessions/{card_id}", headers=headers).status_code == 200

    db.expire_all()
    schedule = db.query(ScheduleORM).filter(ScheduleORM.id == past_schedule.id).one()
    assert schedule.status == ScheduleStatus.CONFIRMED
    assert schedule.session_card_id is None
    assert db.query(ProgramAssignmentORM).filter(ProgramAssignmentORM.id == assignment.id).one().sessions_completed == 0
    assert db.query(TraineeORM).filter(TraineeORM.id == trainee.id).one().completed_sessions == 0


def test_trainee_reads_and_searches_own_cards(client, trainer, trainee, past_schedule, make_trainee, headers_for):
    card_id = client.post(
        "/api/v1/trainer/sessions", json=card_payload(past_schedule.id), headers=headers_for(trainer)
    ).json()["data"]["id"]
    headers = headers_for(trainee)

    listing = client.get("/api/v1/trainee/sessions", headers=headers).json()
    assert listing["totalItems"] == 1
    assert client.get(f"/api/v1/trainee/sessions/{card_id}", headers=headers).json()["data"]["id"] == card_id

    assert client.get("/api/v1/trainee/sessions/search?exerciseName=squat", headers=headers).json()["totalItems"] == 1
    assert client.get("/api/v1/trainee/sessions/search?category=cardio", headers=headers).json()["totalItems"] == 0

    stranger = make_trainee(email="stranger@example.com")
    assert client.get(f"/api/v1/trainee/sessions/{card_id}", headers=headers_for(stranger)).status_code == 404
