"""Schemas for the GitHub OAuth exchange."""

from pydantic import BaseModel, ConfigDict


class GitHubTokenResponse(BaseModel):
    """Body returned by GitHub's access token endpoint."""

    model_config = ConfigDict(extra="ignore")

    access_token: str | None = None
    token_type: str | None = None
    scope: str | None = None
    error: str | None = None
    error_description: str | None = None


class GitHubAccount(BaseModel):
    """Subset of ``GET /user`` used to greet the user."""

    model_config = ConfigDict(extra="ignore")

    login: str
    name: str | None = None

    @property
    def display_name(self) -> str:
        return self.name or self.login
