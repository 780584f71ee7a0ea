import pytest

from models_orm import ExerciseLibraryORM


@pytest.fixture
def library(db, make_trainer):
    other = make_trainer(email="other@example.com", name="Other Coach")
    db.add_all([
        ExerciseLibraryORM(name="Deadlift", category="strength", is_public=True, is_verified=True),
        ExerciseLibraryORM(name="Rowing", category="cardio", is_public=True),
        ExerciseLibraryORM(name="Secret Complex", category="strength", trainer_id=other.id),
    ])
    db.commit()


def test_trainer_sees_public_and_own_exercises(client, trainer, library, headers_for):
    headers = headers_for(trainer)
    created = client.post(
        "/api/v1/trainer/exercises",
        json={"name": "Tempo Squat", "category": "strength", "muscleGroups": ["quads"]},
        headers=headers,
    )
    assert created.status_code == 201
    assert created.json()["data"]["isPublic"] is False

    names = [e["name"] for e in client.get("/api/v1/trainer/exercises", headers=headers).json()["data"]]
    assert names == ["Deadlift", "Rowing", "Tempo Squat"]

    mine = client.get("/api/v1/trainer/exercises?mineOnly=true", headers=headers).json()["data"]
    assert [e["name"] for e in mine] == ["Tempo Squat"]

    strength = client.get("/api/v1/trainer/exercises?category=strength&search=dead", headers=headers).json()["data"]
    assert [e["name"] for e in strength] == ["Deadlift"]


def test_public_exercise_cannot_be_edited(client, db, trainer, library, headers_for):
    public_id = db.query(ExerciseLibraryORM).filter(ExerciseLibraryORM.name == "Deadlift").one().id
    headers = headers_for(trainer)
    assert client.patch(f"/api/v1/trainer/exercises/{public_id}", json={"name": "Mine"}, headers=headers).status_code == 404
    assert client.delete(f"/api/v1/trainer/exercises/{public_id}", headers=headers).status_code == 404


def test_update_and_delete_own_exercise(client, db, trainer, headers_for):
    headers = headers_for(trainer)
    exercise_id = client.post(
        "/api/v1/trainer/exercises", json={"name": "Band Pull", "category": "mobility"}, headers=headers
    ).json()["data"]["id"]

    updated = client.patch(f"/api/v1/trainer/exercises/{exercise_id}", json={"difficulty": "beginner"}, headers=headers)
    assert updated.json()["data"]["difficulty"] == "beginner"

    assert client.delete(f"/api/v1/trainer/exercises/{exercise_id}", headers=headers).status_code == 200
    db.expire_all()
    assert db.query(ExerciseLibraryORM).filter(ExerciseLibraryORM.id == exercise_id).count() == 0


def test_categories_count_public_exercises(client, library):
    response = client.get("/api/v1/common/exercises/categories")
    assert response.status_code == 200
    assert response.json()["data"] == [
        {"category": "cardio", "count": 1},
        {"category": "strength", "count": 1},
    ]
