"""
Shared fixtures: in-memory stand-ins for the user and link services
and a TestClient wired to them.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from apigw.main import create_app
from apigw.rpc.errors import RpcError, RpcStatus
from apigw.rpc.messages import (
    CreateLinkRequest,
    CreateUserRequest,
    DeleteLinkRequest,
    DeleteUserRequest,
    Empty,
    GetLinkRequest,
    GetLinksByUserIdRequest,
    GetUserRequest,
    LinkMessage,
    ListLinksResponse,
    ListUsersResponse,
    UpdateLinkRequest,
    UpdateUserRequest,
    UserMessage,
)
from apigw.settings import Settings

CREATED_AT = "2024-05-01T10:00:00Z"
UPDATED_AT = "2024-05-02T11:30:00Z"


class _FakeService:
    def __init__(self) -> None:
        self.calls: list[str] = []
        self.fail_with: RpcStatus | None = None

    def _enter(self, method: str) -> None:
        self.calls.append(method)
        if self.fail_with is not None:
            raise RpcError(self.fail_with, "backend detail that must not leak")


class FakeUsersRpc(_FakeService):
    def __init__(self) -> None:
        super().__init__()
        self.users: dict[str, UserMessage] = {}

    async def create_user(self, request: CreateUserRequest) -> Empty:
        self._enter("CreateUser")
        if request.id in self.users:
            raise RpcError(RpcStatus.ALREADY_EXISTS, "duplicate")
        self.users[request.id] = UserMessage(
            **request.model_dump(), created_at=CREATED_AT, updated_at=CREATED_AT
        )
        return Empty()

    async def get_user(self, request: GetUserRequest) -> UserMessage:
        self._enter("GetUser")
        if request.id not in self.users:
            raise RpcError(RpcStatus.NOT_FOUND, "no such user")
        return self.users[request.id]

    async def update_user(self, request: UpdateUserRequest) -> Empty:
        self._enter("UpdateUser")
        if request.id not in self.users:
            raise RpcError(RpcStatus.NOT_FOUND, "no such user")
        self.users[request.id] = UserMessage(
            **request.model_dump(), created_at=self.users[request.id].created_at, updated_at=UPDATED_AT
        )
        return Empty()

    async def delete_user(self, request: DeleteUserRequest) -> Empty:
        self._enter("DeleteUser")
        self.users.pop(request.id, None)
        return Empty()

    async def list_users(self, request: Empty) -> ListUsersResponse:
        self._enter("ListUsers")
        return ListUsersResponse(users=list(self.users.values()))


class FakeLinksRpc(_FakeService):
    def __init__(self) -> None:
        super().__init__()
        self.links: dict[str, LinkMessage] = {}

    async def create_link(self, request: CreateLinkRequest) -> Empty:
        self._enter("CreateLink")
        if request.id in self.links:
            raise RpcError(RpcStatus.ALREADY_EXISTS, "duplicate")
        self.links[request.id] = LinkMessage(
            **request.model_dump(), created_at=CREATED_AT, updated_at=CREATED_AT
        )
        return Empty()

    async def get_link(self, request: GetLinkRequest) -> LinkMessage:
        self._enter("GetLink")
        if request.id not in self.links:
            raise RpcError(RpcStatus.NOT_FOUND, "no such link")
        return self.links[request.id]

    async def update_link(self, request: UpdateLinkRequest) -> Empty:
        self._enter("UpdateLink")
        if request.id not in self.links:
            raise RpcError(RpcStatus.NOT_FOUND, "no such link")
        self.links[request.id] = LinkMessage(
            **request.model_dump(), created_at=self.links[request.id].created_at, updated_at=UPDATED_AT
        )
        return Empty()

    async def delete_link(self, request: DeleteLinkRequest) -> Empty:
        self._enter("DeleteLink")
        self.links.pop(request.id, None)
        return Empty()

    async def list_links(self, request: Empty) -> ListLinksResponse:
        self._enter("ListLinks")
        return ListLinksResponse(links=list(self.links.values()))

    async def get_links_by_user_id(self, request: GetLinksByUserIdRequest) -> ListLinksResponse:
        self._enter("GetLinkByUserID")
        return ListLinksResponse(links=[link for link in self.links.values() if link.user_id == request.user_id])


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def users_rpc() -> FakeUsersRpc:
    return FakeUsersRpc()


@pytest.fixture
def links_rpc() -> FakeLinksRpc:
    return FakeLinksRpc()


@pytest.fixture
def client(users_rpc: FakeUsersRpc, links_rpc: FakeLinksRpc) -> TestClient:
    app = create_app(Settings(environment="test"), users_client=users_rpc, links_client=links_rpc)
    return TestClient(app)
