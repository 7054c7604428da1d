"""
/api/users endpoints through the FastAPI app
"""

import uuid
from datetime import datetime, timezone

import asyncpg


def user_row(**overrides):
    row = {
        "id": uuid.uuid4(),
        "username": "alice",
        "email": "alice@example.com",
        "first_name": "Alice",
        "age": 30,
        "created_at": datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
    }
    row.update(overrides)
    return row


def test_create_user_returns_201_with_camel_case_body(client, fake_conn):
    stored = user_row()
    fake_conn.queue("fetchrow", stored)

    response = client.post("/api/users", json={
        "username": "alice", "email": "alice@example.com", "firstName": "Alice", "age": 30
    })

    assert response.status_code == 201
    body = response.json()
    assert body["id"] == str(stored["id"])
    assert body["username"] == "alice"
    assert body["firstName"] == "Alice"
    assert body["age"] == 30
    assert "X-Trace-ID" in response.headers


def test_created_user_is_fetched_with_same_username_and_age(client, fake_conn):
    stored = user_row()
    fake_conn.queue("fetchrow", stored)
    fake_conn.queue("fetch", [stored])

    created = client.post("/api/users", json={"username": "alice", "age": 30}).json()
    fetched = client.get(f"/api/users/{created['id']}").json()

    assert (fetched["username"], fetched["age"]) == (created["username"], created["age"])


def test_duplicate_username_is_409(client, fake_conn):
    fake_conn.queue("fetchrow", asyncpg.UniqueViolationError("duplicate key value"))

    response = client.post("/api/users", json={"username": "alice"})

    assert response.status_code == 409
    assert response.json()["errorCode"] == 409


def test_create_user_requires_username(client):
    response = client.post("/api/users", json={"age": 30})

    assert response.status_code == 422
    body = response.json()
    assert body["errorCode"] == 422
    assert body["nameMethod"] == "POST"
    assert body["uri"] == "/api/users"


def test_get_missing_user_is_404_with_error_body(client):
    user_id = uuid.uuid4()

    response = client.get(f"/api/users/{user_id}")

    assert response.status_code == 404
    assert response.json() == {
        "errorCode": 404,
        "errorDescription": f"User with id {user_id} not found",
        "nameMethod": "GET",
        "uri": f"/api/users/{user_id}"
    }


def test_list_users_defaults_to_first_page_of_ten(client, fake_conn):
    fake_conn.queue("fetch", [user_row(username=f"user{i}") for i in range(3)])

    response = client.get("/api/users")

    assert response.status_code == 200
    assert [user["username"] for user in response.json()] == ["user0", "user1", "user2"]
    _, args = fake_conn.calls_to("fetch")[0]
    assert args == (10,)


def test_list_users_second_page(client, fake_conn):
    client.get("/api/users", params={"page": 1, "size": 10})

    _, args = fake_conn.calls_to("fetch")[0]
    assert args == (10, 10)


def test_list_users_rejects_oversized_page(client, fake_conn):
    response = client.get("/api/users", params={"size": 100000})

    assert response.status_code == 422
    assert fake_conn.calls == []


class TestPatchUser:

    def test_only_sent_fields_are_updated(self, client, fake_conn):
        stored = user_row(age=31)
        fake_conn.queue("fetchrow", stored)

        response = client.patch(f"/api/users/{stored['id']}", json={"age": 31})

        assert response.status_code == 200
        assert response.json()["username"] == "alice"
        query, args = fake_conn.calls_to("fetchrow")[0]
        assert "SET age = $1 WHERE" in query
        assert args == (31, stored["id"])

    def test_explicit_null_clears_optional_field(self, client, fake_conn):
        stored = user_row(email=None)
        fake_conn.queue("fetchrow", stored)

        client.patch(f"/api/users/{stored['id']}", json={"email": None})

        query, args = fake_conn.calls_to("fetchrow")[0]
        assert "SET email = $1 WHERE" in query
        assert args == (None, stored["id"])

    def test_empty_body_is_a_no_op_returning_current_state(self, client, fake_conn):
        stored = user_row()
        fake_conn.queue("fetch", [stored])

        response = client.patch(f"/api/users/{stored['id']}", json={})

        assert response.status_code == 200
        assert response.json()["username"] == "alice"
        assert fake_conn.calls_to("fetchrow") == []

    def test_null_username_is_rejected(self, client, fake_conn):
        response = client.patch(f"/api/users/{uuid.uuid4()}", json={"username": None})

        assert response.status_code == 422
        assert fake_conn.calls == []

    def test_missing_user_is_404(self, client):
        response = client.patch(f"/api/users/{uuid.uuid4()}", json={"age": 40})

        assert response.status_code == 404
        assert response.json()["nameMethod"] == "PATCH"


class TestDeleteUser:

    def test_delete_returns_204(self, client, fake_conn):
        user_id = uuid.uuid4()
        fake_conn.queue("fetchrow", {"id": user_id})

        response = client.delete(f"/api/users/{user_id}")

        assert response.status_code == 204
        assert response.content == b""

    def test_second_delete_is_404(self, client, fake_conn):
        user_id = uuid.uuid4()
        fake_conn.queue("fetchrow", {"id": user_id}, None)

        assert client.delete(f"/api/users/{user_id}").status_code == 204
        assert client.delete(f"/api/users/{user_id}").status_code == 404

    def test_malformed_id_is_422(self, client):
        assert client.delete("/api/users/not-a-uuid").status_code == 422


def test_list_users_rejects_page_beyond_bigint_offset(client, fake_conn):
    response = client.get("/api/users", params={"page": 100000000000000000000, "size": 10})

    assert response.status_code == 422
    assert response.json()["errorCode"] == 422
    assert fake_conn.calls == []
