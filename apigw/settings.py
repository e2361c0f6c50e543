from __future__ import annotations

from functools import lru_cache
import json
from typing import Annotated, Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    # Load from env vars in production/docker, but also support local dev via .env.
    model_config = SettingsConfigDict(env_file=(".env", "../.env"), extra="ignore")

    # Backend RPC endpoints. Each service is reached at `<url>/<Service>/<Method>`.
    users_rpc_url: str = Field(
        default="http://127.0.0.1:9001",
        validation_alias=AliasChoices("USERS_RPC_URL", "USER_SERVICE_URL", "users_rpc_url"),
    )
    links_rpc_url: str = Field(
        default="http://127.0.0.1:9002",
        validation_alias=AliasChoices("LINKS_RPC_URL", "LINK_SERVICE_URL", "links_rpc_url"),
    )

    # Deadline applied to every backend call.
    rpc_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        validation_alias=AliasChoices("RPC_TIMEOUT", "RPC_TIMEOUT_SECONDS", "rpc_timeout_seconds"),
    )

    environment: Literal["development", "production", "test"] = Field(
        default="development",
        validation_alias=AliasChoices("ENV", "ENVIRONMENT", "environment"),
    )

    log_level: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL", "log_level"))

    # CORS: set explicitly in production. Accepts either JSON array (preferred) or comma-separated string.
    cors_allow_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        validation_alias=AliasChoices("CORS_ALLOW_ORIGINS", "cors_allow_origins"),
    )
    cors_allow_methods: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        validation_alias=AliasChoices("CORS_ALLOW_METHODS", "cors_allow_methods"),
    )
    cors_allow_headers: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["*"],
        validation_alias=AliasChoices("CORS_ALLOW_HEADERS", "cors_allow_headers"),
    )

    # Optional hardening; when set, rejects requests with unknown Host headers.
    trusted_hosts: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        validation_alias=AliasChoices("TRUSTED_HOSTS", "trusted_hosts"),
    )

    host: str = Field(default="0.0.0.0", validation_alias=AliasChoices("HOST", "APIGW_HOST", "host"))
    port: int = Field(default=8080, validation_alias=AliasChoices("PORT", "APIGW_PORT", "port"))

    @field_validator("users_rpc_url", "links_rpc_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("RPC url must not be empty")
        return v.rstrip("/")

    @field_validator("cors_allow_origins", "cors_allow_methods", "cors_allow_headers", "trusted_hosts", mode="before")
    @classmethod
    def _split_csv_or_passthrough(cls, v):
        if v is None:
            return []
        if isinstance(v, (list, tuple, set)):
            return [str(x).strip() for x in v if str(x).strip()]
        if isinstance(v, str):
            raw = v.strip()
            if not raw:
                return []
            # Accept JSON arrays (preferred) like: ["https://example.com", "https://www.example.com"]
            if raw.startswith("[") and raw.endswith("]"):
                try:
                    parsed = json.loads(raw)
                except ValueError:
                    # Fall back to a best-effort CSV parse.
                    return [x.strip() for x in raw.strip("[]").split(",") if x.strip()]

                if isinstance(parsed, list):
                    return [str(x).strip() for x in parsed if str(x).strip()]
                if isinstance(parsed, str) and parsed.strip():
                    return [parsed.strip()]
                return []
            return [x.strip() for x in raw.split(",") if x.strip()]
        return v

    @property
    def effective_cors_allow_origins(self) -> list[str]:
        if self.cors_allow_origins:
            return self.cors_allow_origins

        # Dev-friendly defaults only.
        if self.environment != "production":
            return [
                "http://localhost:5173",
                "http://127.0.0.1:5173",
            ]

        return []


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
