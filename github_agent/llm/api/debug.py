"""Diagnostics for configuration, OAuth links and tool resolution."""

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from ...core.config import AgentSettings, get_settings
from ...core.credential_store import CredentialStore
from ...core.exceptions import RemoteToolError
from ...core.logging_config import get_logger
from ...core.types import RepositoryRef
from ...mcp.catalog import ToolCatalog
from ..services.chat_handler import GitHubChatHandler
from ..services.github_oauth import GitHubOAuthService
from ..services.intent_resolver import parse_intent
from .deps import get_chat_handler, get_credential_store, get_oauth_service

router = APIRouter(prefix="/debug", tags=["debug"])
logger = get_logger(__name__)


def _default_repository(settings: AgentSettings) -> RepositoryRef | None:
    if settings.github_default_owner and settings.github_default_repo:
        return RepositoryRef(settings.github_default_owner, settings.github_default_repo)
    return None


@router.get("/config")
async def show_config(settings: AgentSettings = Depends(get_settings)) -> dict[str, Any]:
    client_id = settings.github_client_id
    return {
        "github_client_id": f"{client_id[:12]}..." if client_id else "NOT SET",
        "github_client_secret": "SET (hidden)" if settings.github_client_secret else "NOT SET",
        "github_oauth_redirect_uri": settings.github_oauth_redirect_uri,
        "github_default_owner": settings.github_default_owner or "NOT SET",
        "github_default_repo": settings.github_default_repo or "NOT SET",
        "github_mcp_url": str(settings.github_mcp_url),
        "intent_strategy": settings.intent_strategy,
        "timestamp": datetime.now(tz=timezone.utc).isoformat(),
    }


@router.get("/github-url")
async def show_github_url(
    settings: AgentSettings = Depends(get_settings),
    oauth: GitHubOAuthService = Depends(get_oauth_service),
) -> dict[str, Any]:
    return {
        "url": oauth.build_authorize_url("test-state-123"),
        "client_id": settings.github_client_id,
        "redirect_uri": settings.github_oauth_redirect_uri,
    }


@router.get("/parse/{query:path}")
async def parse_query(
    query: str,
    settings: AgentSettings = Depends(get_settings),
) -> dict[str, Any]:
    resolution = parse_intent(query, default_repo=_default_repository(settings))
    return {
        "query": query,
        "invocations": [
            {
                "tool_name": invocation.tool_name,
                "arguments": invocation.arguments,
                "description": invocation.description,
            }
            for invocation in resolution.invocations
        ],
        "needs_more_info": resolution.needs_more_info,
        "missing_info": resolution.missing_info,
        "note": "Parsing only; no tool was executed.",
    }


@router.get("/tools")
async def list_remote_tools(
    userId: str | None = None,
    settings: AgentSettings = Depends(get_settings),
    handler: GitHubChatHandler = Depends(get_chat_handler),
    credentials: CredentialStore = Depends(get_credential_store),
) -> dict[str, Any]:
    record = await credentials.get_valid(userId) if userId else None
    client = handler.create_client(record.access_token if record else None)
    try:
        await client.connect()
        catalog = ToolCatalog(
            client,
            default_owner=settings.github_default_owner,
            default_repo=settings.github_default_repo,
        )
        tools = await catalog.get_available_tools()
        context = await catalog.get_tools_context()
    except RemoteToolError as exc:
        logger.warning("debug_tools_failed", error=str(exc))
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    finally:
        await client.disconnect()

    return {
        "tool_count": len(tools),
        "tools": [{"name": tool.name, "description": tool.description} for tool in tools],
        "tools_context": context,
    }
