"""
Error body shape, trace ids and sanitizing of logged request bodies
"""

import uuid

import asyncpg

from utils.error_handling import ErrorHandlingConfig


def test_unknown_route_uses_error_body(client):
    response = client.get("/api/nowhere")

    assert response.status_code == 404
    assert set(response.json()) == {"errorCode", "errorDescription", "nameMethod", "uri"}
    assert response.json()["uri"] == "/api/nowhere"


def test_unsupported_method_uses_error_body(client):
    response = client.put("/api/cars", json={})

    assert response.status_code == 405
    assert response.json()["nameMethod"] == "PUT"


def test_store_failure_hides_database_details(client, fake_conn):
    fake_conn.queue("fetchrow", asyncpg.exceptions.DeadlockDetectedError("deadlock detected"))

    response = client.post("/api/users", json={"username": "alice"})

    assert response.status_code == 500
    assert response.json()["errorDescription"] == "Database operation failed"
    assert "X-Trace-ID" in response.headers


def test_integrity_violation_is_400(client, fake_conn):
    fake_conn.queue("fetchrow", asyncpg.NotNullViolationError("null value in column"))

    response = client.post("/api/cars", json={"model": "Civic", "carYear": 2020})

    assert response.status_code == 400
    assert response.json()["errorCode"] == 400


def test_duplicate_rows_for_a_username_is_500(client, fake_conn):
    row = {
        "id": uuid.uuid4(), "username": "alice", "email": None, "first_name": None,
        "age": None, "created_at": None, "city": None, "build": None, "apartment": None,
        "cars": "[]"
    }
    fake_conn.queue("fetch", [row, dict(row, id=uuid.uuid4())])

    response = client.get("/api/users/relations/alice")

    assert response.status_code == 500


def test_each_response_gets_its_own_trace_id(client):
    first = client.get("/api/users/relations/ghost").headers["X-Trace-ID"]
    second = client.get("/api/users/relations/ghost").headers["X-Trace-ID"]

    assert first != second


class TestSanitizeData:

    def test_sensitive_keys_are_redacted_recursively(self):
        data = {"user": {"username": "alice", "password": "hunter2"}, "api_key": "k"}

        assert ErrorHandlingConfig.sanitize_data(data) == {
            "user": {"username": "alice", "password": "***REDACTED***"},
            "api_key": "***REDACTED***"
        }

    def test_long_strings_are_truncated(self):
        sanitized = ErrorHandlingConfig.sanitize_data("x" * (ErrorHandlingConfig.MAX_BODY_LOG_SIZE + 10))

        assert sanitized.endswith("...[TRUNCATED]")
        assert len(sanitized) == ErrorHandlingConfig.MAX_BODY_LOG_SIZE + len("...[TRUNCATED]")


def test_unhandled_error_keeps_error_body_and_trace_id(client, fake_conn):
    fake_conn.queue("fetch", RuntimeError("connection reset"))

    response = client.get("/api/users/relations/full")

    assert response.status_code == 500
    assert response.json()["errorDescription"] == "An unexpected error occurred"
    assert "X-Trace-ID" in response.headers
