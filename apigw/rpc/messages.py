"""Request and reply messages exchanged with the user and link services."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Message(BaseModel):
    # Newer backends may add fields; the gateway only copies what it knows.
    model_config = ConfigDict(extra="ignore")


class Empty(Message):
    pass


class UserMessage(Message):
    id: str = ""
    username: str = ""
    password: str = ""
    created_at: str = ""
    updated_at: str = ""


class CreateUserRequest(Message):
    id: str = ""
    username: str = ""
    password: str = ""


class UpdateUserRequest(Message):
    id: str = ""
    username: str = ""
    password: str = ""


class GetUserRequest(Message):
    id: str


class DeleteUserRequest(Message):
    id: str


class ListUsersResponse(Message):
    users: list[UserMessage] = Field(default_factory=list)


class LinkMessage(Message):
    id: str = ""
    title: str = ""
    url: str = ""
    images: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    user_id: str = ""
    created_at: str = ""
    updated_at: str = ""


class CreateLinkRequest(Message):
    id: str = ""
    title: str = ""
    url: str = ""
    images: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    user_id: str = ""


class UpdateLinkRequest(Message):
    id: str = ""
    title: str = ""
    url: str = ""
    images: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    user_id: str = ""


class GetLinkRequest(Message):
    id: str


class DeleteLinkRequest(Message):
    id: str


class GetLinksByUserIdRequest(Message):
    user_id: str


class ListLinksResponse(Message):
    links: list[LinkMessage] = Field(default_factory=list)
