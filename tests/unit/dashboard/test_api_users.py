"""Tests for the user management API."""

from dashboard.db.models import AuditLog, User

from tests.factories import create_user
from tests.helpers import as_user


def audit_entries(database, action=None):
    with database.session() as db:
        query = db.query(AuditLog)
        if action:
            query = query.filter(AuditLog.action == action)
        return query.order_by(AuditLog.id).all()


class TestCurrentUser:
    """GET /api/rbac/me"""

    def test_returns_caller_and_permissions(self, client, editor_user):
        response = client.get("/api/rbac/me", headers=as_user(editor_user.email))

        assert response.status_code == 200
        data = response.json()
        assert data["email"] == editor_user.email
        assert data["role_name"] == "editor"
        assert "manage_pages" in data["permissions"]
        assert "manage_users" not in data["permissions"]
        assert data["last_login"] is not None

    def test_no_permission_needed(self, client, db_session):
        user = create_user(db_session, email="plain@city.example")
        db_session.commit()

        response = client.get("/api/rbac/me", headers=as_user(user.email))

        assert response.status_code == 200
        assert response.json()["permissions"] == []

    def test_requires_identity(self, client):
        assert client.get("/api/rbac/me").status_code == 401


class TestListUsers:
    """GET /api/rbac/users"""

    def test_admin_lists_users(self, client, admin_user, editor_user, viewer_user):
        response = client.get("/api/rbac/users", headers=as_user(admin_user.email))

        assert response.status_code == 200
        emails = {u["email"] for u in response.json()["users"]}
        assert emails == {admin_user.email, editor_user.email, viewer_user.email}
        roles = {u["email"]: u["role_name"] for u in response.json()["users"]}
        assert roles[viewer_user.email] == "viewer"

    def test_editor_forbidden(self, client, editor_user):
        response = client.get("/api/rbac/users", headers=as_user(editor_user.email))

        assert response.status_code == 403
        assert response.json() == {"error": "Insufficient permissions", "required": "manage_users"}


class TestCreateUser:
    """POST /api/rbac/users"""

    def test_create_user(self, client, database, admin_user, roles):
        response = client.post(
            "/api/rbac/users",
            headers=as_user(admin_user.email),
            json={"email": "new@city.example", "name": "New Person", "role_id": roles["viewer"].id},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "new@city.example"
        assert data["role_name"] == "viewer"
        assert data["is_active"] is True

        entries = audit_entries(database, "create_user")
        assert len(entries) == 1
        assert entries[0].user_id == admin_user.id
        assert entries[0].resource == f"user:{data['id']}"
        assert entries[0].details["email"] == "new@city.example"

    def test_duplicate_email_conflict(self, client, admin_user, editor_user):
        response = client.post(
            "/api/rbac/users",
            headers=as_user(admin_user.email),
            json={"email": editor_user.email, "name": "Twin"},
        )

        assert response.status_code == 409
        assert "already exists" in response.json()["error"]

    def test_unknown_role(self, client, database, admin_user):
        response = client.post(
            "/api/rbac/users",
            headers=as_user(admin_user.email),
            json={"email": "x@city.example", "name": "X", "role_id": 999},
        )

        assert response.status_code == 404
        assert audit_entries(database, "create_user") == []

    def test_invalid_email(self, client, admin_user):
        response = client.post(
            "/api/rbac/users",
            headers=as_user(admin_user.email),
            json={"email": "not-an-email", "name": "X"},
        )

        assert response.status_code == 422

    def test_denied_request_not_audited(self, client, database, viewer_user):
        response = client.post(
            "/api/rbac/users",
            headers=as_user(viewer_user.email),
            json={"email": "y@city.example", "name": "Y"},
        )

        assert response.status_code == 403
        assert audit_entries(database) == []


class TestUpdateUser:
    """PUT /api/rbac/users/{id}"""

    def test_change_role(self, client, database, admin_user, viewer_user, roles):
        response = client.put(
            f"/api/rbac/users/{viewer_user.id}",
            headers=as_user(admin_user.email),
            json={"role_id": roles["editor"].id},
        )

        assert response.status_code == 200
        assert response.json()["role_name"] == "editor"

        entry = audit_entries(database, "update_user")[0]
        assert entry.resource == f"user:{viewer_user.id}"
        assert entry.details == {
            "old": {"role_id": roles["viewer"].id},
            "new": {"role_id": roles["editor"].id},
        }

    def test_promotion_effective_on_next_request(self, client, admin_user, viewer_user, roles):
        headers = as_user(viewer_user.email)
        assert client.get("/api/rbac/users", headers=headers).status_code == 403

        client.put(
            f"/api/rbac/users/{viewer_user.id}",
            headers=as_user(admin_user.email),
            json={"role_id": roles["admin"].id},
        )

        assert client.get("/api/rbac/users", headers=headers).status_code == 200

    def test_deactivate(self, client, database, admin_user, editor_user):
        response = client.put(
            f"/api/rbac/users/{editor_user.id}",
            headers=as_user(admin_user.email),
            json={"is_active": False},
        )

        assert response.status_code == 200
        assert response.json()["is_active"] is False

        me = client.get("/api/rbac/me", headers=as_user(editor_user.email))
        assert me.status_code == 403
        assert me.json()["error"] == "User not found or inactive"

        with database.session() as db:
            assert db.get(User, editor_user.id) is not None

    def test_remove_role(self, client, admin_user, editor_user):
        response = client.put(
            f"/api/rbac/users/{editor_user.id}",
            headers=as_user(admin_user.email),
            json={"role_id": None},
        )

        assert response.status_code == 200
        assert response.json()["role_id"] is None

    def test_unknown_user(self, client, admin_user):
        response = client.put(
            "/api/rbac/users/4242",
            headers=as_user(admin_user.email),
            json={"name": "Nobody"},
        )

        assert response.status_code == 404


class TestEmailCase:
    """Emails are stored lowercased and resolved case-insensitively."""

    def test_created_user_resolves_with_submitted_case(self, client, admin_user, roles):
        response = client.post(
            "/api/rbac/users",
            headers=as_user(admin_user.email),
            json={"email": "Bob@City.EXAMPLE", "name": "Bob", "role_id": roles["viewer"].id},
        )

        assert response.status_code == 201
        assert response.json()["email"] == "bob@city.example"

        me = client.get("/api/rbac/me", headers=as_user("Bob@City.EXAMPLE"))
        assert me.status_code == 200
        assert me.json()["email"] == "bob@city.example"

    def test_duplicate_differing_only_in_case(self, client, admin_user, editor_user):
        response = client.post(
            "/api/rbac/users",
            headers=as_user(admin_user.email),
            json={"email": editor_user.email.upper(), "name": "Twin"},
        )

        assert response.status_code == 409

    def test_header_case_ignored_for_existing_user(self, client, editor_user):
        response = client.get("/api/rbac/me", headers=as_user(editor_user.email.upper()))

        assert response.status_code == 200
        assert response.json()["id"] == editor_user.id
