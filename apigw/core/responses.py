"""Writing success and error responses.

Everything goes through `write_success`: if the payload cannot be serialized the
client gets a bare 500 with an empty body instead of a half-written response.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic_core import to_jsonable_python
from starlette.responses import Response

from apigw.core.errors import DecodeError
from apigw.core.status import app_error_code_for_http, app_error_code_for_rpc, http_status_for
from apigw.rpc.errors import RpcError, RpcStatus
from apigw.schemas.common import AppErrorCode, ErrorEnvelope

logger = logging.getLogger(__name__)

JSON_MEDIA_TYPE = "application/json"


def write_success(status_code: int, payload: Any) -> Response:
    try:
        body = json.dumps(to_jsonable_python(payload), separators=(",", ":"), allow_nan=False)
    except (TypeError, ValueError):
        logger.exception("Failed to serialize %s response", type(payload).__name__)
        return Response(status_code=500)

    return Response(content=body, status_code=status_code, media_type=JSON_MEDIA_TYPE)


def write_empty(status_code: int) -> Response:
    return Response(status_code=status_code)


def write_error(status_code: int, code: AppErrorCode, message: str | None = None) -> Response:
    return write_success(status_code, ErrorEnvelope(code=code, message=message))


def rpc_error_response(status: RpcStatus | int) -> Response:
    return write_error(http_status_for(status), app_error_code_for_rpc(status))


def decode_error_response(err: DecodeError) -> Response:
    return write_error(err.status_code, app_error_code_for_http(err.status_code), err.message)


def rpc_failure_response(operation: str, err: RpcError) -> Response:
    """Log a failed backend call and translate it; backend detail stays in the log."""

    logger.warning("%s failed with %s: %s", operation, err.status.name, err.message or "-")
    return rpc_error_response(err.status)
