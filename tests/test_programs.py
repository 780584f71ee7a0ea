from datetime import date, timedelta

import pytest

from models_orm import ProgramAssignmentORM, ProgramORM
from service_modules.program_service import record_program_session

PROGRAM = {
    "name": "8 Week Strength",
    "description": "Linear progression",
    "totalWeeks": 8,
    "sessionsPerWeek": 3,
    "goals": ["strength"],
    "status": "active",
}


@pytest.fixture
def program_id(client, trainer, headers_for):
    response = client.post("/api/v1/trainer/programs", json=PROGRAM, headers=headers_for(trainer))
    assert response.status_code == 201
    return response.json()["data"]["id"]


def assign(client, trainer, trainee, program_id, headers_for, start=None):
    start = start or date.today()
    return client.post(
        f"/api/v1/trainer/programs/{program_id}/assign",
        json={"traineeId": trainee.id, "startDate": start.isoformat()},
        headers=headers_for(trainer),
    )


def test_create_and_list_programs(client, trainer, program_id, headers_for):
    listing = client.get("/api/v1/trainer/programs", headers=headers_for(trainer)).json()["data"]
    assert [p["id"] for p in listing] == [program_id]
    assert listing[0]["totalWeeks"] == 8

    drafts = client.get("/api/v1/trainer/programs?status=draft", headers=headers_for(trainer)).json()["data"]
    assert drafts == []


def test_assign_program_computes_totals(client, trainer, trainee, program_id, headers_for):
    start = date(2024, 1, 1)
    response = assign(client, trainer, trainee, program_id, headers_for, start)
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["totalSessions"] == 24
    assert data["endDate"] == (start + timedelta(weeks=8)).isoformat()
    assert data["status"] == "active"

    detail = client.get(f"/api/v1/trainer/programs/{program_id}", headers=headers_for(trainer)).json()["data"]
    assert detail["totalAssignments"] == 1
    assert len(detail["activeAssignments"]) == 1


def test_second_active_assignment_conflicts(client, trainer, trainee, program_id, headers_for):
    assert assign(client, trainer, trainee, program_id, headers_for).status_code == 201
    assert assign(client, trainer, trainee, program_id, headers_for).status_code == 409


def test_archived_program_cannot_be_assigned(client, trainer, trainee, program_id, headers_for):
    client.patch(f"/api/v1/trainer/programs/{program_id}", json={"status": "archived"}, headers=headers_for(trainer))
    assert assign(client, trainer, trainee, program_id, headers_for).status_code == 400


def test_assign_to_stranger_is_404(client, trainer, make_trainee, program_id, headers_for):
    stranger = make_trainee(email="stranger@example.com")
    assert assign(client, trainer, stranger, program_id, headers_for).status_code == 404


def test_delete_program_refused_while_active(client, trainer, trainee, program_id, headers_for):
    assign(client, trainer, trainee, program_id, headers_for)
    response = client.delete(f"/api/v1/trainer/programs/{program_id}", headers=headers_for(trainer))
    assert response.status_code == 409


def test_delete_unassigned_program(client, db, trainer, program_id, headers_for):
    assert client.delete(f"/api/v1/trainer/programs/{program_id}", headers=headers_for(trainer)).status_code == 200
    db.expire_all()
    assert db.query(ProgramORM).count() == 0


def test_trainee_sees_current_program(client, trainer, trainee, program_id, headers_for):
    headers = headers_for(trainee)
    assert client.get("/api/v1/trainee/programs/current", headers=headers).status_code == 404

    assign(client, trainer, trainee, program_id, headers_for)
    current = client.get("/api/v1/trainee/programs/current", headers=headers).json()["data"]
    assert current["id"] == program_id
    assert current["assignment"]["currentWeek"] == 1

    assert len(client.get("/api/v1/trainee/programs", headers=headers).json()["data"]) == 1
    assert client.get(f"/api/v1/trainee/programs/{program_id}", headers=headers).status_code == 200


def test_other_trainers_program_is_404(client, make_trainer, program_id, headers_for):
    other = make_trainer(email="other@example.com")
    assert client.get(f"/api/v1/trainer/programs/{program_id}", headers=headers_for(other)).status_code == 404


def test_record_program_session_progress(db, trainer, trainee):
    program = ProgramORM(trainer_id=trainer.id, name="Short", total_weeks=1, sessions_per_week=2, status="active")
    db.add(program)
    db.flush()
    assignment = ProgramAssignmentORM(
        program_id=program.id,
        trainee_id=trainee.id,
        start_date=date.today(),
        end_date=date.today() + timedelta(weeks=1),
        total_sessions=2,
        status="active",
    )
    db.add(assignment)
    db.flush()

    record_program_session(db, assignment, +1)
    assert assignment.progress_percentage == 50.0
    assert assignment.status == "active"

    record_program_session(db, assignment, +1)
    assert assignment.progress_percentage == 100.0
    assert assignment.status == "completed"
    assert assignment.current_week == 1
    assert program.completion_rate == 100.0

    record_program_session(db, assignment, -1)
    assert assignment.status == "active"
    assert program.completion_rate == 0.0
