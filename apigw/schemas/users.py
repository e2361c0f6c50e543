from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class User(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = ""
    username: str = ""
    password: str = ""
    created_at: str = ""
    updated_at: str = ""


class UserCreate(BaseModel):
    """Request body for POST /users and PUT /users/{id}."""

    model_config = ConfigDict(extra="forbid")

    id: str = ""
    username: str = ""
    password: str = ""
