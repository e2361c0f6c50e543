from __future__ import annotations

from enum import IntEnum
from typing import Any


class RpcStatus(IntEnum):
    """Canonical RPC status codes (gRPC numbering)."""

    OK = 0
    CANCELLED = 1
    UNKNOWN = 2
    INVALID_ARGUMENT = 3
    DEADLINE_EXCEEDED = 4
    NOT_FOUND = 5
    ALREADY_EXISTS = 6
    PERMISSION_DENIED = 7
    RESOURCE_EXHAUSTED = 8
    FAILED_PRECONDITION = 9
    ABORTED = 10
    OUT_OF_RANGE = 11
    UNIMPLEMENTED = 12
    INTERNAL = 13
    UNAVAILABLE = 14
    DATA_LOSS = 15
    UNAUTHENTICATED = 16

    @classmethod
    def parse(cls, value: Any) -> "RpcStatus":
        """Read a status from a wire value (number or name); anything unrecognised is UNKNOWN."""

        if isinstance(value, bool):
            return cls.UNKNOWN
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                return cls.UNKNOWN
        if isinstance(value, str):
            name = value.strip().upper()
            if name == "CANCELED":
                return cls.CANCELLED
            return cls.__members__.get(name, cls.UNKNOWN)
        return cls.UNKNOWN


class RpcError(Exception):
    """A failed backend call.

    `status` is the only thing the gateway acts on; `message` is kept for logs and
    is never sent to HTTP clients.
    """

    def __init__(self, status: RpcStatus, message: str = "") -> None:
        super().__init__(f"{status.name}: {message}" if message else status.name)
        self.status = status
        self.message = message
