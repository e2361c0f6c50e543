"""
Tests for application wiring: health, framework errors, request ids.
"""

import httpx
from fastapi.testclient import TestClient

from apigw.core.middleware import REQUEST_ID_HEADER
from apigw.main import create_app
from apigw.rpc.links import LinksClient
from apigw.rpc.users import UsersClient
from apigw.settings import Settings


class TestHealth:
    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"ok": True}


class TestFrameworkErrors:
    """Errors raised by routing still use the error envelope."""

    def test_unknown_route(self, client: TestClient) -> None:
        response = client.get("/nothing-here")
        assert response.status_code == 404
        assert response.json() == {"code": "not_found", "message": "Not Found"}

    def test_wrong_method(self, client: TestClient) -> None:
        response = client.patch("/users/1")
        assert response.status_code == 405
        assert response.json()["code"] == "bad_request"
        assert "allow" in response.headers


class TestRequestId:
    def test_generated(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.headers[REQUEST_ID_HEADER]

    def test_propagated(self, client: TestClient) -> None:
        response = client.get("/health", headers={REQUEST_ID_HEADER: "req-123"})
        assert response.headers[REQUEST_ID_HEADER] == "req-123"


class TestClientLifecycle:
    """Clients built from settings are owned and closed by the app."""

    def _owned_clients(self, app) -> list:
        handlers = {
            id(route.endpoint.__self__): route.endpoint.__self__
            for route in app.routes
            if hasattr(getattr(route, "endpoint", None), "__self__")
        }.values()
        return [handler._client for handler in handlers]

    def test_building_the_app_opens_no_connections(self) -> None:
        settings = Settings(environment="test", users_rpc_url="http://u:1", links_rpc_url="http://l:2")
        clients = self._owned_clients(create_app(settings))
        assert {type(c) for c in clients} == {UsersClient, LinksClient}
        assert not any(c.is_open for c in clients)

    def test_clients_opened_while_serving_are_closed_on_shutdown(self) -> None:
        settings = Settings(environment="test", users_rpc_url="http://u:1", links_rpc_url="http://l:2")
        app = create_app(settings)
        clients = self._owned_clients(app)
        for c in clients:
            c._transport = httpx.MockTransport(lambda request: httpx.Response(200, json={}))

        with TestClient(app) as client:
            assert client.get("/users").json() == []
            assert client.get("/links").json() == []
            assert all(c.is_open for c in clients)

        assert not any(c.is_open for c in clients)
