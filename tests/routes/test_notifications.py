"""Tests for notification inbox and admin notification endpoints."""

from datetime import date, timedelta

from ..factories import ActionItemFactory, NotificationFactory, OneOnOneFactory


class TestInboxRoutes:

    def test_list_and_unread_count(self, client, team_setup, auth_headers):
        developer = team_setup["developer"]
        NotificationFactory(user=developer)
        NotificationFactory(user=developer, is_read=True)
        headers = auth_headers(developer)

        assert len(client.get("/api/notifications", headers=headers).get_json()) == 2
        assert len(client.get("/api/notifications?unread_only=true", headers=headers).get_json()) == 1
        assert client.get("/api/notifications/unread-count", headers=headers).get_json() == {"count": 1}

    def test_limit_must_be_integer(self, client, team_setup, auth_headers):
        response = client.get("/api/notifications?limit=lots", headers=auth_headers(team_setup["developer"]))
        assert response.status_code == 400
        assert response.get_json() == {"error": "limit must be an integer"}

    def test_mark_read(self, client, team_setup, auth_headers):
        notification = NotificationFactory(user=team_setup["developer"])
        response = client.post(
            "/api/notifications/read",
            json={"notification_ids": [notification.id]},
            headers=auth_headers(team_setup["developer"]),
        )
        assert response.get_json()["data"] == {"updated": 1}

    def test_mark_all_read(self, client, team_setup, auth_headers):
        NotificationFactory(user=team_setup["developer"])
        NotificationFactory(user=team_setup["developer"])
        response = client.post("/api/notifications/read-all", headers=auth_headers(team_setup["developer"]))
        assert response.get_json()["data"] == {"updated": 2}

    def test_delete_someone_elses(self, client, team_setup, auth_headers):
        notification = NotificationFactory(user=team_setup["manager"])
        response = client.delete(
            f"/api/notifications/{notification.id}", headers=auth_headers(team_setup["developer"])
        )
        assert response.status_code == 404


class TestAdminNotificationRoutes:

    def test_create(self, client, team_setup, auth_headers):
        response = client.post(
            "/api/admin/notifications",
            json={
                "user_id": team_setup["developer"].id,
                "notification_type": "one_on_one_reminder",
                "title": "Reminder",
                "message": "Please fill in your 1-on-1",
            },
            headers=auth_headers(team_setup["admin"]),
        )
        assert response.status_code == 201
        assert response.get_json()["data"]["is_read"] is False

    def test_create_requires_fields(self, client, team_setup, auth_headers):
        response = client.post("/api/admin/notifications", json={}, headers=auth_headers(team_setup["admin"]))
        assert response.status_code == 400
        assert response.get_json() == {"error": "user_id and notification_type are required"}

    def test_scan_overdue(self, client, team_setup, auth_headers):
        session = OneOnOneFactory(developer=team_setup["developer"], manager=team_setup["manager"])
        ActionItemFactory(one_on_one=session, due_date=date.today() - timedelta(days=2))
        headers = auth_headers(team_setup["admin"])

        first = client.post("/api/admin/notifications/scan-overdue", headers=headers).get_json()
        second = client.post("/api/admin/notifications/scan-overdue", headers=headers).get_json()

        assert first["data"]["notified"] == 1
        assert second["data"]["already_notified"] == 1

    def test_scan_due_soon(self, client, team_setup, auth_headers):
        session = OneOnOneFactory(developer=team_setup["developer"], manager=team_setup["manager"])
        ActionItemFactory(one_on_one=session, due_date=date.today() + timedelta(days=1))

        response = client.post("/api/admin/notifications/scan-due-soon", headers=auth_headers(team_setup["admin"]))

        assert response.get_json()["data"]["notified"] == 1

    def test_scans_are_admin_only(self, client, team_setup, auth_headers):
        response = client.post(
            "/api/admin/notifications/scan-overdue", headers=auth_headers(team_setup["manager"])
        )
        assert response.status_code == 403
