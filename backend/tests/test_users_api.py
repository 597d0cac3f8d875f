"""
User and branch administration tests.

Verifies:
- Only head office may manage users and branches (403 for branch admins)
- Branch admins must have a branch; head office accounts never do
- Duplicate usernames and branch codes are 409
"""

import pytest

from alfapos.models import User


def _new_user(**overrides):
    body = {
        "username": "kasir_bdg",
        "password": "Password123!",
        "full_name": "Kasir Bandung",
        "role": "Admin Cabang",
    }
    body.update(overrides)
    return body


class TestCreateUser:

    def test_branch_admin(self, client, db_session, auth_headers, other_branch):
        resp = client.post("/api/users", json=_new_user(branch_id=other_branch.id), headers=auth_headers)

        assert resp.status_code == 201
        user = resp.get_json()["user"]
        assert user["branch_code"] == "BDG"
        assert user["branch_name"] == "Alfa Optik Bandung"
        assert "password_hash" not in user

    def test_branch_admin_needs_branch(self, client, auth_headers):
        resp = client.post("/api/users", json=_new_user(), headers=auth_headers)
        assert resp.status_code == 400

    def test_unknown_branch_is_404(self, client, auth_headers):
        resp = client.post("/api/users", json=_new_user(branch_id=999), headers=auth_headers)
        assert resp.status_code == 404

    def test_head_office_drops_branch(self, client, db_session, auth_headers, other_branch):
        resp = client.post(
            "/api/users",
            json=_new_user(username="pusat2", role="Admin Pusat", branch_id=other_branch.id),
            headers=auth_headers,
        )

        assert resp.status_code == 201
        assert resp.get_json()["user"]["branch_id"] is None

    def test_unknown_role_is_400(self, client, auth_headers):
        resp = client.post("/api/users", json=_new_user(role="Kasir"), headers=auth_headers)
        assert resp.status_code == 400

    def test_weak_password_is_400(self, client, auth_headers, other_branch):
        resp = client.post(
            "/api/users",
            json=_new_user(password="short", branch_id=other_branch.id),
            headers=auth_headers,
        )
        assert resp.status_code == 400

    def test_duplicate_username_is_409(self, client, auth_headers, head_office_user):
        resp = client.post(
            "/api/users",
            json=_new_user(username=head_office_user.username, role="Admin Pusat"),
            headers=auth_headers,
        )
        assert resp.status_code == 409

    def test_new_user_can_login(self, client, auth_headers, other_branch):
        client.post("/api/users", json=_new_user(branch_id=other_branch.id), headers=auth_headers)

        resp = client.post("/api/auth/login", json={"username": "kasir_bdg", "password": "Password123!"})

        assert resp.status_code == 200
        assert resp.get_json()["user"]["branchCode"] == "BDG"


class TestListAndUpdateUsers:

    def test_list_is_ordered_by_full_name(self, client, auth_headers, branch_admin_user):
        resp = client.get("/api/users", headers=auth_headers)

        assert resp.status_code == 200
        names = [u["full_name"] for u in resp.get_json()["users"]]
        assert names == sorted(names)
        assert len(names) == 2

    def test_update_moves_branch(self, client, db_session, auth_headers, branch_admin_user, other_branch):
        resp = client.put(
            f"/api/users/{branch_admin_user.id}",
            json={"full_name": "Kasir Pindah", "role": "Admin Cabang", "branch_id": other_branch.id},
            headers=auth_headers,
        )

        assert resp.status_code == 200
        db_session.expire_all()
        user = db_session.get(User, branch_admin_user.id)
        assert user.full_name == "Kasir Pindah"
        assert user.branch_id == other_branch.id

    def test_update_oversized_id_is_400(self, client, auth_headers):
        resp = client.put(
            f"/api/users/{10 ** 30}",
            json={"full_name": "X", "role": "Admin Pusat"},
            headers=auth_headers,
        )
        assert resp.status_code == 400

    def test_update_missing_user_is_404(self, client, auth_headers):
        resp = client.put(
            "/api/users/999",
            json={"full_name": "X", "role": "Admin Pusat"},
            headers=auth_headers,
        )
        assert resp.status_code == 404


class TestHeadOfficeOnly:

    @pytest.mark.parametrize("method,path", [
        ("GET", "/api/users"),
        ("POST", "/api/users"),
        ("PUT", "/api/users/1"),
        ("POST", "/api/branches"),
    ])
    def test_branch_admin_is_403(self, client, branch_admin_headers, method, path):
        resp = client.open(path, method=method, json={}, headers=branch_admin_headers)
        assert resp.status_code == 403

    @pytest.mark.parametrize("method,path", [
        ("GET", "/api/users"),
        ("GET", "/api/branches"),
        ("GET", "/api/reports/sales"),
    ])
    def test_anonymous_is_401(self, client, db_session, method, path):
        assert client.open(path, method=method).status_code == 401


class TestBranches:

    def test_create_and_list(self, client, auth_headers):
        resp = client.post("/api/branches", json={"code": "sby", "name": "Alfa Optik Surabaya"}, headers=auth_headers)
        assert resp.status_code == 201
        assert resp.get_json()["branch_code"] == "SBY"

        listed = client.get("/api/branches", headers=auth_headers).get_json()["branches"]
        assert [b["branch_code"] for b in listed] == ["SBY"]

    def test_duplicate_code_is_409(self, client, auth_headers, branch):
        resp = client.post("/api/branches", json={"code": "TBB", "name": "Again"}, headers=auth_headers)
        assert resp.status_code == 409

    def test_missing_name_is_400(self, client, auth_headers):
        resp = client.post("/api/branches", json={"code": "X"}, headers=auth_headers)
        assert resp.status_code == 400
