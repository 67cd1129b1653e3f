"""Tests for the audit log query API."""

from datetime import datetime, timedelta

from tests.factories import create_audit_log
from tests.helpers import as_user


class TestListAuditLogs:
    """GET /api/rbac/audit-logs"""

    def test_requires_view_audit_logs(self, client, editor_user):
        response = client.get("/api/rbac/audit-logs", headers=as_user(editor_user.email))

        assert response.status_code == 403
        assert response.json()["required"] == "view_audit_logs"

    def test_newest_first_with_actor(self, client, db_session, admin_user, editor_user):
        now = datetime.utcnow()
        create_audit_log(db_session, user=editor_user, action="update_page", created_at=now - timedelta(hours=2))
        create_audit_log(db_session, user=admin_user, action="create_role", created_at=now - timedelta(hours=1))
        create_audit_log(db_session, action="system_task", created_at=now)
        db_session.commit()

        response = client.get("/api/rbac/audit-logs", headers=as_user(admin_user.email))

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert [log["action"] for log in data["logs"]] == ["system_task", "create_role", "update_page"]
        assert data["logs"][0]["user_name"] is None
        assert data["logs"][1]["user_email"] == admin_user.email
        assert data["logs"][2]["user_name"] == editor_user.name

    def test_filters(self, client, db_session, admin_user, editor_user):
        create_audit_log(db_session, user=editor_user, action="update_page", resource="page:7")
        create_audit_log(db_session, user=editor_user, action="upload_file", resource="file:3")
        create_audit_log(db_session, user=admin_user, action="update_page", resource="page:8")
        db_session.commit()
        headers = as_user(admin_user.email)

        by_user = client.get(f"/api/rbac/audit-logs?user_id={editor_user.id}", headers=headers).json()
        assert by_user["total"] == 2

        by_action = client.get("/api/rbac/audit-logs?action=update_page", headers=headers).json()
        assert by_action["total"] == 2

        by_resource = client.get("/api/rbac/audit-logs?resource=page", headers=headers).json()
        assert {log["resource"] for log in by_resource["logs"]} == {"page:7", "page:8"}

    def test_pagination(self, client, db_session, admin_user):
        for _ in range(5):
            create_audit_log(db_session, user=admin_user)
        db_session.commit()

        response = client.get("/api/rbac/audit-logs?page=2&per_page=2", headers=as_user(admin_user.email))

        data = response.json()
        assert data["total"] == 5
        assert data["page"] == 2
        assert data["per_page"] == 2
        assert len(data["logs"]) == 2

    def test_per_page_capped(self, client, admin_user):
        response = client.get("/api/rbac/audit-logs?per_page=500", headers=as_user(admin_user.email))

        assert response.status_code == 422

    def test_privileged_actions_appear(self, client, admin_user):
        headers = as_user(admin_user.email)
        client.post("/api/rbac/roles", headers=headers, json={"name": "auditor", "permissions": ["view_audit_logs"]})

        logs = client.get("/api/rbac/audit-logs", headers=headers).json()["logs"]

        assert logs[0]["action"] == "create_role"
        assert logs[0]["user_id"] == admin_user.id
        assert logs[0]["details"]["name"] == "auditor"
        assert logs[0]["ip_address"] == "testclient"

    def test_forged_forwarded_for_does_not_suppress_entry(self, client, admin_user):
        headers = {**as_user(admin_user.email), "X-Forwarded-For": "A" * 300}
        created = client.post("/api/rbac/roles", headers=headers, json={"name": "quiet", "permissions": []})
        assert created.status_code == 201

        logs = client.get("/api/rbac/audit-logs?action=create_role", headers=as_user(admin_user.email)).json()["logs"]

        assert len(logs) == 1
        assert logs[0]["ip_address"] == "testclient"

    def test_resource_filter_wildcards_are_literal(self, client, db_session, admin_user):
        create_audit_log(db_session, resource="page_1")
        create_audit_log(db_session, resource="pageX1")
        create_audit_log(db_session, resource="discount:100%")
        db_session.commit()
        headers = as_user(admin_user.email)

        underscore = client.get("/api/rbac/audit-logs?resource=page_1", headers=headers).json()
        assert [log["resource"] for log in underscore["logs"]] == ["page_1"]

        percent = client.get("/api/rbac/audit-logs", params={"resource": "%"}, headers=headers).json()
        assert [log["resource"] for log in percent["logs"]] == ["discount:100%"]
