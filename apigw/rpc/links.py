from __future__ import annotations

from typing import Protocol

from apigw.rpc.client import RpcClient
from apigw.rpc.messages import (
    CreateLinkRequest,
    DeleteLinkRequest,
    Empty,
    GetLinkRequest,
    GetLinksByUserIdRequest,
    LinkMessage,
    ListLinksResponse,
    UpdateLinkRequest,
)


class LinksRpc(Protocol):
    """Link service operations the gateway depends on. Failures raise `RpcError`."""

    async def create_link(self, request: CreateLinkRequest) -> Empty: ...

    async def get_link(self, request: GetLinkRequest) -> LinkMessage: ...

    async def update_link(self, request: UpdateLinkRequest) -> Empty: ...

    async def delete_link(self, request: DeleteLinkRequest) -> Empty: ...

    async def list_links(self, request: Empty) -> ListLinksResponse: ...

    async def get_links_by_user_id(self, request: GetLinksByUserIdRequest) -> ListLinksResponse: ...


class LinksClient(RpcClient):
    service = "LinkService"

    async def create_link(self, request: CreateLinkRequest) -> Empty:
        return await self.call("CreateLink", request, Empty)

    async def get_link(self, request: GetLinkRequest) -> LinkMessage:
        return await self.call("GetLink", request, LinkMessage)

    async def update_link(self, request: UpdateLinkRequest) -> Empty:
        return await self.call("UpdateLink", request, Empty)

    async def delete_link(self, request: DeleteLinkRequest) -> Empty:
        return await self.call("DeleteLink", request, Empty)

    async def list_links(self, request: Empty) -> ListLinksResponse:
        return await self.call("ListLinks", request, ListLinksResponse)

    async def get_links_by_user_id(self, request: GetLinksByUserIdRequest) -> ListLinksResponse:
        return await self.call("GetLinkByUserID", request, ListLinksResponse)
