from __future__ import annotations

import logging

from fastapi import APIRouter
from starlette.requests import Request
from starlette.responses import Response

from apigw.core.decoding import decode_json_body
from apigw.core.errors import DecodeError
from apigw.core.responses import decode_error_response, rpc_failure_response, write_empty, write_success
from apigw.rpc.errors import RpcError
from apigw.rpc.links import LinksRpc
from apigw.rpc.messages import (
    CreateLinkRequest,
    DeleteLinkRequest,
    Empty,
    GetLinkRequest,
    GetLinksByUserIdRequest,
    LinkMessage,
    UpdateLinkRequest,
)
from apigw.schemas.links import Link, LinkCreate

logger = logging.getLogger(__name__)


def _to_link(message: LinkMessage) -> Link:
    return Link(
        id=message.id,
        title=message.title,
        url=message.url,
        images=list(message.images),
        tags=list(message.tags),
        user_id=message.user_id,
        created_at=message.created_at,
        updated_at=message.updated_at,
    )


class LinksHandler:
    """HTTP endpoints for links, each forwarded to the link service."""

    def __init__(self, client: LinksRpc) -> None:
        self._client = client

    def router(self) -> APIRouter:
        router = APIRouter(prefix="/links", tags=["links"])
        router.add_api_route("", self.list_links, methods=["GET"])
        router.add_api_route("", self.create_link, methods=["POST"], status_code=201)
        router.add_api_route("/user/{user_id}", self.list_links_by_user, methods=["GET"])
        router.add_api_route("/{link_id}", self.get_link, methods=["GET"])
        router.add_api_route("/{link_id}", self.update_link, methods=["PUT"], status_code=204)
        router.add_api_route("/{link_id}", self.delete_link, methods=["DELETE"], status_code=204)
        return router

    async def list_links(self) -> Response:
        try:
            resp = await self._client.list_links(Empty())
        except RpcError as exc:
            return rpc_failure_response("ListLinks", exc)

        return write_success(200, [_to_link(link) for link in resp.links])

    async def list_links_by_user(self, user_id: str) -> Response:
        try:
            resp = await self._client.get_links_by_user_id(GetLinksByUserIdRequest(user_id=user_id))
        except RpcError as exc:
            return rpc_failure_response("GetLinkByUserID", exc)

        return write_success(200, [_to_link(link) for link in resp.links])

    async def create_link(self, request: Request) -> Response:
        try:
            body = await decode_json_body(request, LinkCreate)
        except DecodeError as exc:
            logger.info("Rejected link create body: %s", exc.message)
            return decode_error_response(exc)

        try:
            await self._client.create_link(
                CreateLinkRequest(
                    id=body.id,
                    title=body.title,
                    url=body.url,
                    images=body.images,
                    tags=body.tags,
                    user_id=body.user_id,
                )
            )
        except RpcError as exc:
            return rpc_failure_response("CreateLink", exc)

        return write_empty(201)

    async def get_link(self, link_id: str) -> Response:
        try:
            link = await self._client.get_link(GetLinkRequest(id=link_id))
        except RpcError as exc:
            return rpc_failure_response("GetLink", exc)

        return write_success(200, _to_link(link))

    async def update_link(self, link_id: str, request: Request) -> Response:
        try:
            body = await decode_json_body(request, LinkCreate)
        except DecodeError as exc:
            logger.info("Rejected link update body: %s", exc.message)
            return decode_error_response(exc)

        try:
            await self._client.update_link(
                UpdateLinkRequest(
                    id=link_id,
                    title=body.title,
                    url=body.url,
                    images=body.images,
                    tags=body.tags,
                    user_id=body.user_id,
                )
            )
        except RpcError as exc:
            return rpc_failure_response("UpdateLink", exc)

        return write_empty(204)

    async def delete_link(self, link_id: str) -> Response:
        try:
            await self._client.delete_link(DeleteLinkRequest(id=link_id))
        except RpcError as exc:
            return rpc_failure_response("DeleteLink", exc)

        return write_empty(204)
