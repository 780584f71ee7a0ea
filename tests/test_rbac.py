import pytest

from auth import Identity, ensure_owner
from errors import ForbiddenError, UnauthorizedError
from models_orm import Role


@pytest.mark.parametrize("path", [
    "/api/v1/trainer/clients",
    "/api/v1/trainer/schedules",
    "/api/v1/trainer/programs",
    "/api/v1/trainer/exercises",
    "/api/v1/trainer/dashboard/stats",
])
def test_trainee_cannot_reach_trainer_routes(client, trainee, headers_for, path):
    response = client.get(path, headers=headers_for(trainee))
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "FORBIDDEN"


@pytest.mark.parametrize("path", [
    "/api/v1/trainee/schedules/upcoming",
    "/api/v1/trainee/notifications",
    "/api/v1/trainee/stats",
    "/api/v1/trainee/programs",
])
def test_trainer_cannot_reach_trainee_routes(client, trainer, headers_for, path):
    assert client.get(path, headers=headers_for(trainer)).status_code == 403


def test_anonymous_gets_401(client):
    response = client.get("/api/v1/trainee/stats")
    assert response.status_code == 401
    assert response.json()["success"] is False


def test_admin_routes_only_for_admins(client, trainer, headers_for):
    assert client.get("/api/v1/admin/users", headers=headers_for(trainer)).status_code == 403


def test_trainee_reads_own_stats_but_not_others(client, make_trainee, trainer, headers_for):
    tina = make_trainee(email="tina@example.com", trainer=trainer)
    tom = make_trainee(email="tom@example.com", trainer=trainer)

    assert client.get(f"/api/v1/trainees/{tina.id}/stats", headers=headers_for(tina)).status_code == 200
    response = client.get(f"/api/v1/trainees/{tom.id}/stats", headers=headers_for(tina))
    assert response.status_code == 403


def test_trainer_passes_ownership_check(client, trainee, trainer, headers_for):
    response = client.get(f"/api/v1/trainees/{trainee.id}/metrics", headers=headers_for(trainer))
    assert response.status_code == 200
    assert response.json()["data"] == []


def test_unknown_trainee_is_404(client, trainer, headers_for):
    assert client.get("/api/v1/trainees/9999/stats", headers=headers_for(trainer)).status_code == 404


def test_ensure_owner_rules():
    trainee = Identity(user_id=5, role=Role.TRAINEE)
    ensure_owner(trainee, 5)
    ensure_owner(trainee, "5")
    ensure_owner(Identity(user_id=1, role=Role.TRAINER), 5)
    ensure_owner(Identity(user_id=2, role=Role.ADMIN), 5)

    with pytest.raises(ForbiddenError):
        ensure_owner(trainee, 6)
    with pytest.raises(UnauthorizedError):
        ensure_owner(None, 5)
