"""
Tests for the /users endpoints.

Runs the real application against an in-memory user service and checks
status codes, envelopes and which backend calls were made.
"""

from fastapi.testclient import TestClient

from apigw.rpc.errors import RpcStatus

JSON = {"Content-Type": "application/json"}

ANN = {"id": "7f6c2a4e-0000-4000-8000-000000000001", "username": "ann", "password": "s3cret"}


class TestCreateUser:
    """POST /users."""

    def test_created_with_empty_body(self, client: TestClient, users_rpc) -> None:
        response = client.post("/users", json=ANN)
        assert response.status_code == 201
        assert response.content == b""
        assert users_rpc.calls == ["CreateUser"]

    def test_keys_in_other_case_are_accepted(self, client: TestClient, users_rpc) -> None:
        response = client.post("/users", content=b'{"ID":"1","Username":"ann"}', headers=JSON)
        assert response.status_code == 201
        assert users_rpc.users["1"].username == "ann"

    def test_already_exists_is_conflict(self, client: TestClient) -> None:
        client.post("/users", json=ANN)
        response = client.post("/users", json=ANN)
        assert response.status_code == 409
        assert response.json() == {"code": "conflict", "message": None}

    def test_wrong_content_type(self, client: TestClient, users_rpc) -> None:
        response = client.post("/users", content=b'{"id":"1"}', headers={"Content-Type": "text/plain"})
        assert response.status_code == 415
        assert response.json() == {"code": "bad_request", "message": "content-type is not application/json"}
        assert users_rpc.calls == []

    def test_oversized_body(self, client: TestClient, users_rpc) -> None:
        response = client.post("/users", content=b" " * 70_000, headers=JSON)
        assert response.status_code == 413
        assert response.json()["code"] == "bad_request"
        assert users_rpc.calls == []

    def test_syntax_error(self, client: TestClient, users_rpc) -> None:
        response = client.post("/users", content=b'{"id":}', headers=JSON)
        assert response.status_code == 400
        assert response.json() == {"code": "bad_request", "message": "malformed json at position 7"}
        assert users_rpc.calls == []

    def test_unknown_field(self, client: TestClient, users_rpc) -> None:
        response = client.post("/users", content=b'{"id":"1","unknownField":true}', headers=JSON)
        assert response.status_code == 400
        assert "unknownField" in response.json()["message"]
        assert users_rpc.calls == []

    def test_two_objects(self, client: TestClient) -> None:
        response = client.post("/users", content=b'{"id":"1"}{"id":"2"}', headers=JSON)
        assert response.status_code == 400
        assert response.json()["message"] == "body must contain only one JSON object"

    def test_invalid_argument_from_backend(self, client: TestClient, users_rpc) -> None:
        users_rpc.fail_with = RpcStatus.INVALID_ARGUMENT
        response = client.post("/users", json=ANN)
        assert response.status_code == 400
        assert response.json() == {"code": "bad_request", "message": None}


class TestGetUser:
    """GET /users/{id}."""

    def test_not_found(self, client: TestClient) -> None:
        response = client.get("/users/missing")
        assert response.status_code == 404
        assert response.json() == {"code": "not_found", "message": None}
        assert response.content == b'{"code":"not_found","message":null}'

    def test_round_trip_preserves_fields(self, client: TestClient) -> None:
        assert client.post("/users", json=ANN).status_code == 201

        response = client.get(f"/users/{ANN['id']}")
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/json"
        body = response.json()
        for field, value in ANN.items():
            assert body[field] == value
        assert body["created_at"] == "2024-05-01T10:00:00Z"

    def test_backend_detail_never_leaks(self, client: TestClient, users_rpc) -> None:
        users_rpc.fail_with = RpcStatus.INTERNAL
        response = client.get("/users/any")
        assert response.status_code == 500
        assert b"must not leak" not in response.content


class TestUpdateUser:
    """PUT /users/{id}."""

    def test_no_content(self, client: TestClient, users_rpc) -> None:
        client.post("/users", json=ANN)
        response = client.put(f"/users/{ANN['id']}", json={"username": "anne", "password": "new"})
        assert response.status_code == 204
        assert response.content == b""
        assert users_rpc.users[ANN["id"]].username == "anne"

    def test_path_id_wins_over_body_id(self, client: TestClient, users_rpc) -> None:
        client.post("/users", json=ANN)
        response = client.put(f"/users/{ANN['id']}", json={"id": "other", "username": "anne"})
        assert response.status_code == 204
        assert "other" not in users_rpc.users

    def test_bad_body_skips_backend(self, client: TestClient, users_rpc) -> None:
        response = client.put("/users/1", content=b"", headers=JSON)
        assert response.status_code == 400
        assert response.json()["message"] == "body must not be empty"
        assert users_rpc.calls == []


class TestDeleteAndList:
    """DELETE /users/{id} and GET /users."""

    def test_delete(self, client: TestClient, users_rpc) -> None:
        client.post("/users", json=ANN)
        response = client.delete(f"/users/{ANN['id']}")
        assert response.status_code == 204
        assert users_rpc.users == {}

    def test_list(self, client: TestClient) -> None:
        client.post("/users", json=ANN)
        client.post("/users", json={**ANN, "id": "2", "username": "bob"})
        response = client.get("/users")
        assert response.status_code == 200
        assert [u["username"] for u in response.json()] == ["ann", "bob"]

    def test_list_empty(self, client: TestClient) -> None:
        response = client.get("/users")
        assert response.status_code == 200
        assert response.json() == []

    def test_unavailable_backend(self, client: TestClient, users_rpc) -> None:
        users_rpc.fail_with = RpcStatus.UNAVAILABLE
        response = client.get("/users")
        assert response.status_code == 503
        assert response.json() == {"code": "internal_server_error", "message": None}

    def test_deadline_exceeded(self, client: TestClient, users_rpc) -> None:
        users_rpc.fail_with = RpcStatus.DEADLINE_EXCEEDED
        response = client.delete("/users/1")
        assert response.status_code == 504
        assert response.json()["code"] == "internal_server_error"
