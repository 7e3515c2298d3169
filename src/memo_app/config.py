"""Configuration management for Memo App."""

from __future__ import annotations

from datetime import datetime, timedelta
from functools import lru_cache
from typing import Literal

import structlog
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger()


def _get_workspace_client():
    """Return a WorkspaceClient for the ambient Databricks identity."""
    from databricks.sdk import WorkspaceClient

    return WorkspaceClient()


class OAuthTokenManager:
    """Caches the Lakebase OAuth credential and refreshes it before expiry."""

    def __init__(self) -> None:
        self._token: str | None = None
        self._expires_at: datetime | None = None
        self._endpoint_name: str | None = None

    def get_token(self, endpoint_name: str) -> str | None:
        if not endpoint_name:
            return None

        if (
            self._token
            and self._endpoint_name == endpoint_name
            and self._expires_at
            and datetime.now() < self._expires_at - timedelta(minutes=5)
        ):
            return self._token

        try:
            logger.info("generating_oauth_token", endpoint=endpoint_name)
            cred = _get_workspace_client().postgres.generate_database_credential(
                endpoint=endpoint_name
            )

            self._token = cred.token
            self._endpoint_name = endpoint_name
            self._expires_at = datetime.now() + timedelta(minutes=55)
            return self._token
        except Exception as e:
            logger.error("oauth_token_generation_failed", error=str(e))
            return None


_token_manager = OAuthTokenManager()


class LakebaseSettings(BaseSettings):
    """Connection settings for the memo database.

    ``host``, ``user`` and ``password`` may be given directly (e.g. a local
    Postgres); whatever is left empty is resolved from the Databricks
    workspace identity.
    """

    model_config = SettingsConfigDict(
        env_prefix="LAKEBASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = ""
    port: int = 5432
    database: str = "memoapp"
    user: str = ""
    password: str = ""
    sslmode: str = "require"
    project_id: str = "memo-app"
    branch_id: str = "production"
    endpoint_id: str = "default"

    @property
    def endpoint_name(self) -> str:
        return (
            f"projects/{self.project_id}/branches/{self.branch_id}"
            f"/endpoints/{self.endpoint_id}"
        )

    def get_host(self) -> str:
        if self.host:
            return self.host

        endpoint = _get_workspace_client().postgres.get_endpoint(name=self.endpoint_name)
        return endpoint.status.hosts.host

    def get_user(self) -> str:
        """Postgres role: service principal client_id, or the user's email."""
        if self.user:
            return self.user

        w = _get_workspace_client()
        if w.config.client_id:
            return w.config.client_id
        return w.current_user.me().user_name

    def get_password(self) -> str:
        if self.password:
            return self.password

        token = _token_manager.get_token(endpoint_name=self.endpoint_name)
        return token or self.password


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"
    log_json: bool = False
    storage_backend: Literal["postgres", "memory"] = "postgres"

    @property
    def lakebase(self) -> LakebaseSettings:
        return LakebaseSettings()


@lru_cache
def get_settings() -> Settings:
    return Settings()
