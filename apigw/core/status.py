"""Translation between RPC status codes, HTTP status codes and client error codes.

All three functions are total: values outside their tables resolve to
500 / `internal_server_error`.
"""

from __future__ import annotations

from typing import Final, Mapping

from apigw.rpc.errors import RpcStatus
from apigw.schemas.common import AppErrorCode

_HTTP_STATUS_BY_RPC: Final[Mapping[int, int]] = {
    RpcStatus.OK: 200,
    RpcStatus.CANCELLED: 408,
    RpcStatus.UNKNOWN: 500,
    RpcStatus.INVALID_ARGUMENT: 400,
    RpcStatus.DEADLINE_EXCEEDED: 504,
    RpcStatus.NOT_FOUND: 404,
    RpcStatus.ALREADY_EXISTS: 409,
    RpcStatus.PERMISSION_DENIED: 403,
    RpcStatus.RESOURCE_EXHAUSTED: 429,
    RpcStatus.FAILED_PRECONDITION: 400,
    RpcStatus.ABORTED: 409,
    RpcStatus.OUT_OF_RANGE: 400,
    RpcStatus.UNIMPLEMENTED: 501,
    RpcStatus.INTERNAL: 500,
    RpcStatus.UNAVAILABLE: 503,
    RpcStatus.DATA_LOSS: 500,
    RpcStatus.UNAUTHENTICATED: 401,
}

# Only statuses the client can do something about get a specific code.
_APP_CODE_BY_RPC: Final[Mapping[int, AppErrorCode]] = {
    RpcStatus.NOT_FOUND: AppErrorCode.NOT_FOUND,
    RpcStatus.INVALID_ARGUMENT: AppErrorCode.BAD_REQUEST,
    RpcStatus.FAILED_PRECONDITION: AppErrorCode.BAD_REQUEST,
    RpcStatus.OUT_OF_RANGE: AppErrorCode.BAD_REQUEST,
    RpcStatus.ABORTED: AppErrorCode.CONFLICT,
    RpcStatus.ALREADY_EXISTS: AppErrorCode.CONFLICT,
}

_APP_CODE_BY_HTTP: Final[Mapping[int, AppErrorCode]] = {
    400: AppErrorCode.BAD_REQUEST,
    409: AppErrorCode.CONFLICT,
    413: AppErrorCode.BAD_REQUEST,
    415: AppErrorCode.BAD_REQUEST,
    500: AppErrorCode.INTERNAL_SERVER_ERROR,
}


def http_status_for(status: RpcStatus | int) -> int:
    return _HTTP_STATUS_BY_RPC.get(status, 500)


def app_error_code_for_rpc(status: RpcStatus | int) -> AppErrorCode:
    return _APP_CODE_BY_RPC.get(status, AppErrorCode.INTERNAL_SERVER_ERROR)


def app_error_code_for_http(status_code: int) -> AppErrorCode:
    """Error code for a failure the gateway raised itself while decoding a request."""

    return _APP_CODE_BY_HTTP.get(status_code, AppErrorCode.INTERNAL_SERVER_ERROR)
