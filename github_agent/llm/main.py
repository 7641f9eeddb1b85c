"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from ..core.config import env_file_candidates, get_settings, resolved_env_file
from ..core.credential_store import CredentialStore
from ..core.logging_config import configure_logging, get_logger
from .api.auth import router as auth_router
from .api.chat import router as chat_router
from .api.debug import router as debug_router
from .api.health import router as health_router
from .services.chat_handler import GitHubChatHandler
from .services.github_oauth import GitHubOAuthService

configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """FastAPI lifespan handler."""

    settings = get_settings()
    logger.info(
        "agent_startup",
        env=settings.app_env,
        log_level=settings.log_level,
        agent_host=settings.agent_host,
        agent_port=settings.agent_port,
        github_mcp_url=str(settings.github_mcp_url),
        intent_strategy=settings.intent_strategy,
    )
    logger.info(
        "environment_loaded",
        log_file=settings.log_file or "stdout-only",
        env_file=resolved_env_file() or "not-found",
        env_candidates=list(env_file_candidates()),
    )
    if not settings.github_client_id or settings.github_client_secret is None:
        logger.warning("github_oauth_not_configured")
    yield
    logger.info("agent_shutdown")


app = FastAPI(
    title="GitHub MCP Agent",
    version="0.1.0",
    description="Chat middleware that turns GitHub requests into MCP tool calls.",
    lifespan=lifespan,
)

_settings = get_settings()
app.state.credential_store = CredentialStore()
app.state.oauth_service = GitHubOAuthService(_settings, app.state.credential_store)
app.state.chat_handler = GitHubChatHandler(_settings, app.state.credential_store)


@app.middleware("http")
async def log_incoming_requests(request: Request, call_next):
    logger.info(
        "http_request_received",
        method=request.method,
        path=request.url.path,
        client=str(request.client[0]) if request.client else "unknown",
    )
    response = await call_next(request)
    logger.info(
        "http_request_completed",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
    )
    return response

app.include_router(health_router)
app.include_router(chat_router)
app.include_router(auth_router)
app.include_router(debug_router)


@app.get("/")
async def index() -> dict[str, str]:
    return {"service": "github-mcp-agent", "status": "ok"}
