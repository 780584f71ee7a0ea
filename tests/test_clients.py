from datetime import date, timedelta

import pytest

from errors import InvalidInputError
from models_orm import (
    NotificationORM, ProgramAssignmentORM, ProgramORM, ScheduleORM, ScheduleStatus, TraineeORM, TrainerORM, UserORM,
)
from service_modules.base import set_field

NEW_CLIENT = {
    "email": "Client@Example.com",
    "name": "Casey Client",
    "password": "Welcome123",
    "height": 180,
    "weight": 82.5,
    "goals": ["lose fat"],
    "fitnessLevel": "beginner",
}


def test_add_client_creates_assigned_trainee(client, db, trainer, headers_for):
    response = client.post("/api/v1/trainer/clients", json=NEW_CLIENT, headers=headers_for(trainer))
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["email"] == "client@example.com"
    assert data["trainerId"] == trainer.id

    db.expire_all()
    assert db.query(TrainerORM).filter(TrainerORM.id == trainer.id).one().total_clients == 1
    welcome = db.query(NotificationORM).filter(NotificationORM.user_id == data["userId"]).one()
    assert welcome.type == "system"

    login = client.post("/api/v1/auth/login", json={"email": "client@example.com", "password": "Welcome123"})
    assert login.status_code == 200


def test_add_client_duplicate_email(client, trainer, trainee, headers_for):
    payload = dict(NEW_CLIENT, email="trainee@example.com")
    assert client.post("/api/v1/trainer/clients", json=payload, headers=headers_for(trainer)).status_code == 409


def test_list_clients_search_and_pagination(client, make_trainee, trainer, headers_for):
    for name in ("Alice Adams", "Bob Brown", "Alan Archer"):
        make_trainee(email=f"{name.split()[0].lower()}@example.com", name=name, trainer=trainer)
    make_trainee(email="unassigned@example.com", name="Alma Nobody")
    headers = headers_for(trainer)

    body = client.get("/api/v1/trainer/clients?search=al&pageSize=1", headers=headers).json()
    assert body["totalItems"] == 2
    assert body["totalPages"] == 2
    assert body["data"][0]["name"] == "Alan Archer"


def test_client_detail_includes_stats(client, trainer, trainee, make_schedule, headers_for):
    make_schedule(trainer, trainee, date.today() - timedelta(days=1), status=ScheduleStatus.COMPLETED)
    data = client.get(f"/api/v1/trainer/clients/{trainee.id}", headers=headers_for(trainer)).json()["data"]
    assert data["name"] == "Tina Trainee"
    assert data["stats"]["completedSessions"] == 1


def test_update_client(client, trainer, trainee, headers_for):
    response = client.patch(
        f"/api/v1/trainer/clients/{trainee.id}",
        json={"weight": 70, "phoneNumber": "555-0100", "status": "inactive"},
        headers=headers_for(trainer),
    )
    data = response.json()["data"]
    assert data["weight"] == 70
    assert data["phoneNumber"] == "555-0100"
    assert data["status"] == "inactive"


def test_update_client_null_clears_optional_field(client, trainer, trainee, headers_for):
    headers = headers_for(trainer)
    client.patch(f"/api/v1/trainer/clients/{trainee.id}", json={"phoneNumber": "555-0100"}, headers=headers)
    response = client.patch(f"/api/v1/trainer/clients/{trainee.id}", json={"phoneNumber": None}, headers=headers)
    assert response.status_code == 200
    assert response.json()["data"]["phoneNumber"] is None


def test_set_field_rejects_null_for_required_column():
    user = UserORM(name="Casey")
    with pytest.raises(InvalidInputError):
        set_field(user, "name", None)
    assert user.name == "Casey"

    set_field(user, "phone_number", None)
    assert user.phone_number is None


def test_remove_client_cancels_open_work(client, db, trainer, trainee, make_schedule, headers_for):
    upcoming = make_schedule(trainer, trainee, date.today() + timedelta(days=3))
    program = ProgramORM(trainer_id=trainer.id, name="Base", total_weeks=4, sessions_per_week=2, status="active")
    db.add(program)
    db.flush()
    assignment = ProgramAssignmentORM(
        program_id=program.id,
        trainee_id=trainee.id,
        start_date=date.today(),
        end_date=date.today() + timedelta(weeks=4),
        total_sessions=8,
        status="active",
    )
    db.add(assignment)
    db.commit()

    response = client.delete(f"/api/v1/trainer/clients/{trainee.id}", headers=headers_for(trainer))
    assert response.status_code == 200

    db.expire_all()
    assert db.query(TraineeORM).filter(TraineeORM.id == trainee.id).one().trainer_id is None
    assert db.query(ScheduleORM).filter(ScheduleORM.id == upcoming.id).one().status == ScheduleStatus.CANCELLED
    assert db.query(ProgramAssignmentORM).filter(ProgramAssignmentORM.id == assignment.id).one().status == "cancelled"

    assert client.get(f"/api/v1/trainer/clients/{trainee.id}", headers=headers_for(trainer)).status_code == 404


def test_record_metric_updates_weight(client, db, trainer, trainee, headers_for):
    headers = headers_for(trainer)
    url = f"/api/v1/trainer/clients/{trainee.id}/metrics"
    today = date.today()

    client.post(url, json={"date": today.isoformat(), "type": "weight", "value": 80, "unit": "kg"}, headers=headers)
    older = {"date": (today - timedelta(days=30)).isoformat(), "type": "weight", "value": 85, "unit": "kg"}
    assert client.post(url, json=older, headers=headers).status_code == 201

    db.expire_all()
    assert db.query(TraineeORM).filter(TraineeORM.id == trainee.id).one().weight == 80

    metrics = client.get("/api/v1/trainee/metrics?type=weight", headers=headers_for(trainee)).json()["data"]
    assert [m["value"] for m in metrics] == [80, 85]


def test_metric_validation(client, trainer, trainee, headers_for):
    response = client.post(
        f"/api/v1/trainer/clients/{trainee.id}/metrics",
        json={"date": date.today().isoformat(), "type": "height", "value": -1, "unit": "cm"},
        headers=headers_for(trainer),
    )
    assert response.status_code == 422
    fields = {d["field"] for d in response.json()["error"]["details"]}
    assert {"type", "value"} <= fields


def test_trainee_updates_own_profile(client, trainee, headers_for):
    headers = headers_for(trainee)
    response = client.patch(
        "/api/v1/trainee/me", json={"name": "Tina T.", "fitnessLevel": "advanced", "goals": ["run 10k"]}, headers=headers
    )
    assert response.status_code == 200
    profile = client.get("/api/v1/trainee/me", headers=headers).json()["data"]
    assert profile["name"] == "Tina T."
    assert profile["fitnessLevel"] == "advanced"
    assert profile["goals"] == ["run 10k"]
