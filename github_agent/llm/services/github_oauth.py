"""GitHub OAuth web flow feeding the credential store."""

from __future__ import annotations

import secrets
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from ...core.config import AgentSettings
from ...core.credential_store import CredentialStore
from ...core.exceptions import ConfigurationError, ExternalServiceError, OAuthError
from ...core.http_client import async_http_client
from ...core.logging_config import get_logger
from ...core.types import CredentialRecord
from ..schemas.oauth import GitHubAccount, GitHubTokenResponse

logger = get_logger(__name__)

AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
ACCESS_TOKEN_URL = "https://github.com/login/oauth/access_token"
USER_URL = "https://api.github.com/user"
OAUTH_SCOPE = "repo read:user"
STATE_TTL_SECONDS = 10 * 60
TOKEN_EXCHANGE_TIMEOUT = 10.0
USER_LOOKUP_TIMEOUT = 5.0


@dataclass(slots=True)
class PendingState:
    user_id: str
    created_at: float


@dataclass(slots=True)
class OAuthCompletion:
    """Outcome of a successful callback."""

    user_id: str
    record: CredentialRecord
    account: GitHubAccount | None = None


class GitHubOAuthService:
    """Issue authorization URLs and finish the code-for-token exchange.

    Pending states live in memory, are single-use, and expire after ten
    minutes. Expired entries are pruned whenever a new state is issued.
    """

    def __init__(
        self,
        settings: AgentSettings,
        credential_store: CredentialStore,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._settings = settings
        self._credentials = credential_store
        self._clock = clock
        self._pending: dict[str, PendingState] = {}

    def build_authorize_url(self, state: str) -> str:
        if not self._settings.github_client_id:
            raise ConfigurationError("GITHUB_CLIENT_ID must be set for GitHub sign-in")
        query = urlencode(
            {
                "client_id": self._settings.github_client_id,
                "redirect_uri": self._settings.github_oauth_redirect_uri,
                "scope": OAUTH_SCOPE,
                "state": state,
            }
        )
        return f"{AUTHORIZE_URL}?{query}"

    def create_authorization_url(self, user_id: str) -> str:
        self._prune_expired()
        state = secrets.token_urlsafe(24)
        url = self.build_authorize_url(state)
        self._pending[state] = PendingState(user_id=user_id, created_at=self._clock())
        logger.info("oauth_state_issued", user_id=user_id, pending=len(self._pending))
        return url

    def _prune_expired(self) -> None:
        cutoff = self._clock() - STATE_TTL_SECONDS
        expired = [key for key, pending in self._pending.items() if pending.created_at < cutoff]
        for key in expired:
            del self._pending[key]

    def _consume_state(self, state: str | None) -> str:
        if not state:
            raise OAuthError("Invalid or missing state parameter")
        pending = self._pending.pop(state, None)
        if pending is None or pending.created_at < self._clock() - STATE_TTL_SECONDS:
            raise OAuthError("Invalid or expired state. Please try again.")
        return pending.user_id

    async def complete(self, code: str | None, state: str | None) -> OAuthCompletion:
        """Validate the callback, exchange the code and store the credential."""

        if not code:
            raise OAuthError("Missing authorization code")
        user_id = self._consume_state(state)

        token = await self._exchange_code(code)
        if not token.access_token:
            logger.warning("oauth_token_missing", user_id=user_id, error=token.error)
            raise OAuthError("Failed to obtain access token from GitHub")

        account = await self._fetch_account(token.access_token)
        record = CredentialRecord(
            access_token=token.access_token,
            token_type=token.token_type or "bearer",
            scope=token.scope or "",
            obtained_at=datetime.now(tz=timezone.utc),
            login=account.login if account else None,
        )
        await self._credentials.put(user_id, record)
        logger.info(
            "oauth_completed",
            user_id=user_id,
            login=record.login or "unknown",
            scope=record.scope,
        )
        return OAuthCompletion(user_id=user_id, record=record, account=account)

    async def _exchange_code(self, code: str) -> GitHubTokenResponse:
        secret = self._settings.github_client_secret
        payload = {
            "client_id": self._settings.github_client_id,
            "client_secret": secret.get_secret_value() if secret else None,
            "code": code,
            "redirect_uri": self._settings.github_oauth_redirect_uri,
        }
        try:
            async with async_http_client(timeout=TOKEN_EXCHANGE_TIMEOUT) as client:
                response = await client.post(
                    ACCESS_TOKEN_URL,
                    json=payload,
                    headers={"Accept": "application/json"},
                )
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPError as exc:
            logger.error("oauth_token_exchange_failed", error=str(exc))
            raise ExternalServiceError(f"GitHub token exchange failed: {exc}") from exc

        try:
            return GitHubTokenResponse.model_validate(body)
        except ValidationError as exc:
            raise ExternalServiceError("GitHub token exchange returned an unexpected body") from exc

    async def _fetch_account(self, access_token: str) -> GitHubAccount | None:
        try:
            async with async_http_client(timeout=USER_LOOKUP_TIMEOUT) as client:
                response = await client.get(
                    USER_URL,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
                response.raise_for_status()
                return GitHubAccount.model_validate(response.json())
        except (httpx.HTTPError, ValueError) as exc:
            # The greeting is optional; sign-in still succeeds without it.
            logger.warning("oauth_user_lookup_failed", error=str(exc))
            return None


def render_success_message(completion: OAuthCompletion) -> str:
    if completion.account is None:
        return (
            "✅ GitHub Authentication Successful!\n\n"
            "You can now use GitHub tools in your chat. You can close this window."
        )
    return (
        "✅ GitHub Authentication Successful!\n\n"
        f"Welcome, {completion.account.display_name}!\n\n"
        "You can now use GitHub tools in your chat. Try asking:\n"
        '• "List my repositories"\n'
        '• "Show pull requests for my-repo"\n'
        '• "What GitHub tools are available?"\n\n'
        "You can close this window and return to the chat."
    )
