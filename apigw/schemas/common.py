from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class AppErrorCode(str, Enum):
    """Client-facing error taxonomy carried in the error envelope."""

    BAD_REQUEST = "bad_request"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    INTERNAL_SERVER_ERROR = "internal_server_error"


class ErrorEnvelope(BaseModel):
    """Standard error body.

    `message` stays null for backend failures so RPC details never reach clients;
    decode failures fill it with something the caller can act on.
    """

    model_config = ConfigDict(extra="forbid")

    code: AppErrorCode
    message: str | None = None
