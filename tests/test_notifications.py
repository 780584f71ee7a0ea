from models_orm import NotificationORM
from service_modules.notification_service import NotificationService


def seed(db, user_id, count=3, notification_type="schedule"):
    service = NotificationService(db)
    for i in range(count):
        service.add_notification(user_id, notification_type, f"Title {i}", f"Message {i}")
    db.commit()


def test_list_notifications_with_unread_count(client, db, trainee, headers_for):
    seed(db, trainee.user_id, 3)
    response = client.get("/api/v1/trainee/notifications?pageSize=2", headers=headers_for(trainee))
    assert response.status_code == 200
    body = response.json()
    assert len(body["data"]) == 2
    assert body["totalItems"] == 3
    assert body["totalPages"] == 2
    assert body["unreadCount"] == 3


def test_filter_by_type_and_unread(client, db, trainee, headers_for):
    seed(db, trainee.user_id, 2, "schedule")
    seed(db, trainee.user_id, 1, "progress")
    headers = headers_for(trainee)

    response = client.get("/api/v1/trainee/notifications?type=progress", headers=headers)
    assert [n["type"] for n in response.json()["data"]] == ["progress"]

    first = response.json()["data"][0]["id"]
    client.put(f"/api/v1/trainee/notifications/{first}/read", headers=headers)
    response = client.get("/api/v1/trainee/notifications?unreadOnly=true", headers=headers)
    assert response.json()["totalItems"] == 2


def test_mark_as_read_sets_read_at_once(client, db, trainee, headers_for):
    seed(db, trainee.user_id, 1)
    notification_id = db.query(NotificationORM).first().id
    headers = headers_for(trainee)

    first = client.put(f"/api/v1/trainee/notifications/{notification_id}/read", headers=headers)
    assert first.status_code == 200
    assert first.json()["data"]["isRead"] is True
    read_at = first.json()["data"]["readAt"]
    assert read_at is not None

    second = client.put(f"/api/v1/trainee/notifications/{notification_id}/read", headers=headers)
    assert second.json()["data"]["readAt"] == read_at


def test_mark_all_as_read_is_idempotent(client, db, trainee, headers_for):
    seed(db, trainee.user_id, 4)
    headers = headers_for(trainee)

    first = client.put("/api/v1/trainee/notifications/read-all", headers=headers)
    assert first.json()["data"]["updatedCount"] == 4
    second = client.put("/api/v1/trainee/notifications/read-all", headers=headers)
    assert second.json()["data"]["updatedCount"] == 0

    count = client.get("/api/v1/trainee/notifications/unread-count", headers=headers)
    assert count.json()["data"]["unreadCount"] == 0


def test_other_users_notification_is_not_found(client, db, make_trainee, trainer, headers_for):
    owner = make_trainee(email="owner@example.com", trainer=trainer)
    intruder = make_trainee(email="intruder@example.com", trainer=trainer)
    seed(db, owner.user_id, 1)
    notification_id = db.query(NotificationORM).first().id

    headers = headers_for(intruder)
    assert client.put(f"/api/v1/trainee/notifications/{notification_id}/read", headers=headers).status_code == 404
    assert client.delete(f"/api/v1/trainee/notifications/{notification_id}", headers=headers).status_code == 404

    db.expire_all()
    assert db.query(NotificationORM).filter(NotificationORM.id == notification_id).one().is_read is False


def test_delete_notification(client, db, trainee, headers_for):
    seed(db, trainee.user_id, 1)
    notification_id = db.query(NotificationORM).first().id
    response = client.delete(f"/api/v1/trainee/notifications/{notification_id}", headers=headers_for(trainee))
    assert response.status_code == 200
    db.expire_all()
    assert db.query(NotificationORM).count() == 0


def test_create_notification_commits(db, trainee):
    created = NotificationService(db).create_notification(
        trainee.user_id, "achievement", "New badge", "Ten sessions completed", priority="low"
    )
    assert created.id is not None
    assert created.is_read is False
    assert created.priority == "low"
    assert NotificationService(db).get_unread_count(trainee.user_id) == 1
