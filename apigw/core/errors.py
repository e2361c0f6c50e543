from __future__ import annotations


class DecodeError(Exception):
    """A request body the gateway refuses to forward.

    `message` is client-facing: it names the violated constraint so the caller
    can fix the request.
    """

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class BodyTooLargeError(Exception):
    def __init__(self, limit: int) -> None:
        super().__init__("request body too large")
        self.limit = limit
