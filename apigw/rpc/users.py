from __future__ import annotations

from typing import Protocol

from apigw.rpc.client import RpcClient
from apigw.rpc.messages import (
    CreateUserRequest,
    DeleteUserRequest,
    Empty,
    GetUserRequest,
    ListUsersResponse,
    UpdateUserRequest,
    UserMessage,
)


class UsersRpc(Protocol):
    """User service operations the gateway depends on. Failures raise `RpcError`."""

    async def create_user(self, request: CreateUserRequest) -> Empty: ...

    async def get_user(self, request: GetUserRequest) -> UserMessage: ...

    async def update_user(self, request: UpdateUserRequest) -> Empty: ...

    async def delete_user(self, request: DeleteUserRequest) -> Empty: ...

    async def list_users(self, request: Empty) -> ListUsersResponse: ...


class UsersClient(RpcClient):
    service = "UserService"

    async def create_user(self, request: CreateUserRequest) -> Empty:
        return await self.call("CreateUser", request, Empty)

    async def get_user(self, request: GetUserRequest) -> UserMessage:
        return await self.call("GetUser", request, UserMessage)

    async def update_user(self, request: UpdateUserRequest) -> Empty:
        return await self.call("UpdateUser", request, Empty)

    async def delete_user(self, request: DeleteUserRequest) -> Empty:
        return await self.call("DeleteUser", request, Empty)

    async def list_users(self, request: Empty) -> ListUsersResponse:
        return await self.call("ListUsers", request, ListUsersResponse)
