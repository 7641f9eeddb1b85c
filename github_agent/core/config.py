"""Configuration management for the GitHub agent service."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AnyHttpUrl, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

_REPO_ROOT = Path(__file__).resolve().parents[2]
_PACKAGE_DIR = Path(__file__).resolve().parents[1]
# Repo-root .env first, then the package directory, then the working directory.
_ENV_FILE_CANDIDATES: tuple[str, ...] = (
    str(_REPO_ROOT / ".env"),
    str(_PACKAGE_DIR / ".env"),
    ".env",
)


class AgentSettings(BaseSettings):
    """Centralised configuration derived from environment variables."""

    app_env: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_file: str | None = Field(
        None,
        description="Log file path; empty or None keeps logging on stdout only",
    )

    agent_host: str = Field("0.0.0.0", description="FastAPI bind host")
    agent_port: int = Field(3978, description="FastAPI bind port")
    bot_endpoint: str = Field(
        "http://localhost:3978",
        description="Public base URL used to build sign-in links",
    )

    github_mcp_url: AnyHttpUrl = Field(
        "https://api.githubcopilot.com/mcp", description="GitHub MCP server endpoint"
    )
    github_mcp_timeout_seconds: float = Field(
        30.0, description="Per-request timeout for the MCP transport"
    )
    github_client_id: str | None = Field(None, description="GitHub OAuth app client id")
    github_client_secret: SecretStr | None = Field(
        None, description="GitHub OAuth app client secret"
    )
    github_oauth_redirect_uri: str = Field(
        "http://localhost:3978/auth/github/callback",
        description="Callback registered with the GitHub OAuth app",
    )
    github_default_owner: str | None = Field(
        None, description="Repository owner used when a request names none"
    )
    github_default_repo: str | None = Field(
        None, description="Repository name used when a request names none"
    )

    intent_strategy: Literal["pattern", "llm"] = Field(
        "pattern", description="How user requests are mapped onto tool calls"
    )
    llm_api_key: SecretStr | None = Field(
        None, description="API key for the OpenAI-compatible model endpoint"
    )
    llm_api_base: AnyHttpUrl = Field(
        "https://api.openai.com/v1", description="OpenAI-compatible API endpoint"
    )
    llm_model: str = Field("gpt-4o-mini", description="Chat model used for intent resolution")

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE_CANDIDATES,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> AgentSettings:
    """Return a cached AgentSettings instance."""

    return AgentSettings()  # type: ignore[call-arg]


def resolved_env_file() -> str | None:
    """Return the first readable .env file from the candidate list."""

    for candidate in _ENV_FILE_CANDIDATES:
        path = Path(candidate).expanduser()
        if path.is_file():
            return str(path)
    return None


def env_file_candidates() -> tuple[str, ...]:
    """Expose configured env file search order for diagnostics."""

    return _ENV_FILE_CANDIDATES
