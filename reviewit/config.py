"""Settings for the server and the push command.

config.yaml holds one mapping per section. String values may reference
environment variables as ${NAME}; unknown names are left as written. Every
section also reads env vars with its own prefix (SERVER_PORT,
CI_TIMEOUT_SECONDS, ...).

The push command's token comes from client.api_token, CLIENT_API_TOKEN or
the file named by CLIENT_API_TOKEN_FILE (Docker secrets). Keep real tokens
out of committed config files.
"""

import os
import re
import tempfile
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENV_REF = re.compile(r"\$\{\s*(?P<name>[A-Za-z_][A-Za-z0-9_]*)\s*\}")


class ServerConfig(BaseSettings):
    """JSON API server settings."""

    model_config = SettingsConfigDict(env_prefix="SERVER_", extra="ignore")

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=3000, ge=1, le=65535, description="Bind port")


class StoreConfig(BaseSettings):
    """Where merge requests, projects and users are kept (YAML files)."""

    model_config = SettingsConfigDict(env_prefix="STORE_", extra="ignore")

    data_dir: str = Field(default=".reviewit", description="Directory holding the YAML records")


class WorkspaceConfig(BaseSettings):
    """Scratch checkouts used by integration jobs."""

    model_config = SettingsConfigDict(env_prefix="WORKSPACE_", extra="ignore")

    base_dir: str = Field(
        default_factory=lambda: str(Path(tempfile.gettempdir()) / "reviewit"),
        description="Shared base directory for per-attempt workspaces",
    )


class IntegrationConfig(BaseSettings):
    """Accept-and-integrate settings."""

    model_config = SettingsConfigDict(env_prefix="INTEGRATION_", extra="ignore")

    local_ref: str = Field(default="master", description="Local ref pushed to the target branch")


class CIConfig(BaseSettings):
    """CI status collaborator settings."""

    model_config = SettingsConfigDict(env_prefix="CI_", extra="ignore")

    timeout_seconds: float = Field(default=2.0, gt=0, description="Status query timeout")
    # Fixed build reference used for status queries; per-patch hashes are not queried
    build_ref: str = Field(
        default="15cc9596c3ba462f20579453607aaed4d75c0733",
        description="Build reference queried for CI status",
    )


class ClientConfig(BaseSettings):
    """Settings for the `reviewit push` command."""

    model_config = SettingsConfigDict(env_prefix="CLIENT_", extra="ignore")

    api_url: str = Field(default="http://localhost:3000/api", description="Server API base URL")
    api_token: str | None = Field(default=None, description="API token; use env or secret file")
    project_id: int = Field(default=1, ge=1, description="Project the merge requests belong to")
    target_branch: str = Field(default="master", description="Branch new merge requests target")


class LoggingConfig(BaseSettings):
    """Log level and format for both commands."""

    model_config = SettingsConfigDict(env_prefix="LOGGING_", extra="ignore")

    level: str = Field(default="INFO", description="DEBUG, INFO, WARNING or ERROR")
    format: str = Field(
        default="%(asctime)s - %(name)s - [%(threadName)s] %(levelname)s - %(message)s",
        description="logging format string",
    )


class AppConfig(BaseSettings):
    """All sections of config.yaml."""

    model_config = SettingsConfigDict(extra="ignore")

    server: ServerConfig = Field(default_factory=ServerConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    workspace: WorkspaceConfig = Field(default_factory=WorkspaceConfig)
    integration: IntegrationConfig = Field(default_factory=IntegrationConfig)
    ci: CIConfig = Field(default_factory=CIConfig)
    client: ClientConfig = Field(default_factory=ClientConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def client_token_resolved(self) -> str | None:
        """Token for `reviewit push`, or None when none is configured.

        An api_token still holding an unresolved ${NAME} counts as unset.
        """
        token = self.client.api_token
        if token and not _ENV_REF.search(token):
            return token
        from_env = os.environ.get("CLIENT_API_TOKEN", "").strip()
        if from_env:
            return from_env
        secret_file = os.environ.get("CLIENT_API_TOKEN_FILE")
        if secret_file:
            return Path(secret_file).read_text(encoding="utf-8").strip()
        return None


_SECTIONS: dict[str, type[BaseSettings]] = {
    "server": ServerConfig,
    "store": StoreConfig,
    "workspace": WorkspaceConfig,
    "integration": IntegrationConfig,
    "ci": CIConfig,
    "client": ClientConfig,
    "logging": LoggingConfig,
}


def _expand_env(value: Any, env: Mapping[str, str]) -> Any:
    """Replace ${NAME} inside strings, recursively through dicts and lists."""
    if isinstance(value, str):
        return _ENV_REF.sub(lambda m: env.get(m.group("name"), m.group(0)), value)
    if isinstance(value, dict):
        return {k: _expand_env(v, env) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_env(v, env) for v in value]
    return value


def load_config(config_path: Path | None = None) -> AppConfig:
    """Read config.yaml (or config_path); a missing file gives the defaults.

    Raises:
        ValueError: the file is not a mapping of sections, or a value is invalid.
    """
    path = Path(config_path or "config.yaml")
    if not path.is_file():
        return AppConfig()
    raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: expected a mapping of config sections")
    raw = _expand_env(raw, os.environ)
    return AppConfig(**{name: section(**(raw.get(name) or {})) for name, section in _SECTIONS.items()})
