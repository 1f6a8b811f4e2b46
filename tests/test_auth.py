from tests.conftest import PASSWORD, auth_header


def login(client, email: str, password: str = PASSWORD):
    return client.post("/auth/login", json={"email": email, "password": password})


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_register_then_login(client):
    r = client.post(
        "/auth/register",
        json={"email": "new@example.com", "password": "longenough", "full_name": "New"},
    )
    assert r.status_code == 201, r.text
    assert r.json()["role"] == "student"

    token = login(client, "new@example.com", "longenough").json()["access_token"]
    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == "new@example.com"


def test_duplicate_email_rejected(client):
    r = client.post(
        "/auth/register",
        json={"email": "student1@example.com", "password": "longenough"},
    )
    assert r.status_code == 400


def test_bad_password_rejected(client):
    assert login(client, "student1@example.com", "wrong-password").status_code == 401


def test_missing_or_bad_token_rejected(client, seed):
    assert client.get(f"/assignments/{seed.hw1}").status_code == 401
    r = client.get(f"/assignments/{seed.hw1}", headers={"Authorization": "Bearer not-a-token"})
    assert r.status_code == 401


def test_admin_changes_role_and_it_applies_next_request(client, seed):
    r = client.patch(
        f"/admin/users/{seed.outsider}/role",
        headers=auth_header(seed.admin),
        json={"role": "teacher"},
    )
    assert r.status_code == 200, r.text

    created = client.post(
        "/courses", headers=auth_header(seed.outsider), json={"title": "New course"}
    )
    assert created.status_code == 201, created.text
    assert created.json()["instructor_id"] == seed.outsider


def test_non_admin_cannot_change_roles(client, seed):
    r = client.patch(
        f"/admin/users/{seed.student}/role",
        headers=auth_header(seed.teacher),
        json={"role": "admin"},
    )
    assert r.status_code == 403
