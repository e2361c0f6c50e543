from __future__ import annotations

import logging

from fastapi import APIRouter
from starlette.requests import Request
from starlette.responses import Response

from apigw.core.decoding import decode_json_body
from apigw.core.errors import DecodeError
from apigw.core.responses import decode_error_response, rpc_failure_response, write_empty, write_success
from apigw.rpc.errors import RpcError
from apigw.rpc.messages import (
    CreateUserRequest,
    DeleteUserRequest,
    Empty,
    GetUserRequest,
    UpdateUserRequest,
    UserMessage,
)
from apigw.rpc.users import UsersRpc
from apigw.schemas.users import User, UserCreate

logger = logging.getLogger(__name__)


def _to_user(message: UserMessage) -> User:
    return User(
        id=message.id,
        username=message.username,
        password=message.password,
        created_at=message.created_at,
        updated_at=message.updated_at,
    )


class UsersHandler:
    """HTTP endpoints for users, each forwarded to the user service."""

    def __init__(self, client: UsersRpc) -> None:
        self._client = client

    def router(self) -> APIRouter:
        router = APIRouter(prefix="/users", tags=["users"])
        router.add_api_route("", self.list_users, methods=["GET"])
        router.add_api_route("", self.create_user, methods=["POST"], status_code=201)
        router.add_api_route("/{user_id}", self.get_user, methods=["GET"])
        router.add_api_route("/{user_id}", self.update_user, methods=["PUT"], status_code=204)
        router.add_api_route("/{user_id}", self.delete_user, methods=["DELETE"], status_code=204)
        return router

    async def list_users(self) -> Response:
        try:
            resp = await self._client.list_users(Empty())
        except RpcError as exc:
            return rpc_failure_response("ListUsers", exc)

        return write_success(200, [_to_user(u) for u in resp.users])

    async def create_user(self, request: Request) -> Response:
        try:
            body = await decode_json_body(request, UserCreate)
        except DecodeError as exc:
            logger.info("Rejected user create body: %s", exc.message)
            return decode_error_response(exc)

        try:
            await self._client.create_user(
                CreateUserRequest(id=body.id, username=body.username, password=body.password)
            )
        except RpcError as exc:
            return rpc_failure_response("CreateUser", exc)

        return write_empty(201)

    async def get_user(self, user_id: str) -> Response:
        try:
            user = await self._client.get_user(GetUserRequest(id=user_id))
        except RpcError as exc:
            return rpc_failure_response("GetUser", exc)

        return write_success(200, _to_user(user))

    async def update_user(self, user_id: str, request: Request) -> Response:
        try:
            body = await decode_json_body(request, UserCreate)
        except DecodeError as exc:
            logger.info("Rejected user update body: %s", exc.message)
            return decode_error_response(exc)

        # The path names the resource; an id in the body is ignored.
        try:
            await self._client.update_user(
                UpdateUserRequest(id=user_id, username=body.username, password=body.password)
            )
        except RpcError as exc:
            return rpc_failure_response("UpdateUser", exc)

        return write_empty(204)

    async def delete_user(self, user_id: str) -> Response:
        try:
            await self._client.delete_user(DeleteUserRequest(id=user_id))
        except RpcError as exc:
            return rpc_failure_response("DeleteUser", exc)

        return write_empty(204)
