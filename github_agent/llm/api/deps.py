"""Request-scoped accessors for application state."""

from fastapi import Request

from ...core.credential_store import CredentialStore
from ..services.chat_handler import GitHubChatHandler
from ..services.github_oauth import GitHubOAuthService


def get_credential_store(request: Request) -> CredentialStore:
    return request.app.state.credential_store


def get_oauth_service(request: Request) -> GitHubOAuthService:
    return request.app.state.oauth_service


def get_chat_handler(request: Request) -> GitHubChatHandler:
    return request.app.state.chat_handler
