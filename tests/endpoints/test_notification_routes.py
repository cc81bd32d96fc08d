from app.services.notification import notification_service
from tests.helpers.asserts import api_call, assert_error
from tests.helpers.contract import validate_response_schema
from app.schemas.notification import Notification


def test_list_and_mark_read(client, db_session, user_id):
    older = notification_service.create_notification(db_session, user_id=user_id, message="Fintech 101: passed", notification_type="assessment_passed")
    notification_service.create_notification(db_session, user_id=user_id, message="Core Payments: failed", notification_type="assessment_failed")
    notification_service.create_notification(db_session, user_id="someone-else", message="not yours")

    response = api_call(client, "GET", f"/api/notifications/{user_id}")
    notifications = validate_response_schema(response.json(), Notification)
    assert {n.message for n in notifications} == {"Fintech 101: passed", "Core Payments: failed"}
    assert not any(n.is_read for n in notifications)

    response = api_call(client, "POST", f"/api/notifications/{older.id}/read")
    assert response.json()["is_read"] is True


def test_list_is_empty_for_unknown_user(client):
    response = api_call(client, "GET", "/api/notifications/nobody")
    assert response.json() == []


def test_mark_missing_notification(client):
    assert_error(client.post("/api/notifications/999999/read"), 404, "NOT_FOUND")
