from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Link(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = ""
    title: str = ""
    url: str = ""
    images: list[str] = []
    tags: list[str] = []
    user_id: str = ""
    created_at: str = ""
    updated_at: str = ""


class LinkCreate(BaseModel):
    """Request body for POST /links and PUT /links/{id}."""

    model_config = ConfigDict(extra="forbid")

    id: str = ""
    title: str = ""
    url: str = ""
    images: list[str] = []
    tags: list[str] = []
    user_id: str = ""
