from __future__ import annotations

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.trustedhost import TrustedHostMiddleware

from apigw.core.logging import configure_logging
from apigw.core.middleware import RequestContextMiddleware
from apigw.core.responses import write_error
from apigw.routes import health
from apigw.routes.links import LinksHandler
from apigw.routes.users import UsersHandler
from apigw.rpc.client import RpcClient
from apigw.rpc.links import LinksClient, LinksRpc
from apigw.rpc.users import UsersClient, UsersRpc
from apigw.schemas.common import AppErrorCode
from apigw.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    users_client: UsersRpc | None = None,
    links_client: LinksRpc | None = None,
) -> FastAPI:
    """Build the gateway.

    Backend clients are built from settings unless passed in; clients built here
    are closed on shutdown, injected ones belong to the caller.
    """

    settings = settings or get_settings()
    configure_logging(level=settings.log_level)

    owned: list[RpcClient] = []
    if users_client is None:
        users_client = UsersClient(settings.users_rpc_url, timeout=settings.rpc_timeout_seconds)
        owned.append(users_client)
    if links_client is None:
        links_client = LinksClient(settings.links_rpc_url, timeout=settings.rpc_timeout_seconds)
        owned.append(links_client)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        try:
            yield
        finally:
            for client in owned:
                await client.aclose()

    app = FastAPI(title="API Gateway", version="1.0.0", lifespan=lifespan)

    app.add_middleware(RequestContextMiddleware)

    if settings.trusted_hosts:
        app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.trusted_hosts)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.effective_cors_allow_origins,
        allow_credentials=False,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request, exc: StarletteHTTPException):
        # Unknown routes and wrong methods still answer with the standard envelope.
        if exc.status_code == 404:
            code = AppErrorCode.NOT_FOUND
        elif 400 <= exc.status_code < 500:
            code = AppErrorCode.BAD_REQUEST
        else:
            code = AppErrorCode.INTERNAL_SERVER_ERROR
        message = exc.detail if isinstance(exc.detail, str) else None
        response = write_error(exc.status_code, code, message)
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(Exception)
    async def handle_unhandled_error(request, exc: Exception):
        # Log full exception, return safe envelope.
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return write_error(500, AppErrorCode.INTERNAL_SERVER_ERROR)

    app.include_router(health.router)
    app.include_router(UsersHandler(users_client).router())
    app.include_router(LinksHandler(links_client).router())

    return app


app = create_app()
