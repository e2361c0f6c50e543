"""Run the gateway with uvicorn: `python -m apigw`."""

from __future__ import annotations

import uvicorn

from apigw.settings import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "apigw.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        proxy_headers=True,
    )


if __name__ == "__main__":
    main()
