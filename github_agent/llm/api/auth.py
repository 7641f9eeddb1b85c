"""GitHub OAuth routes."""

from html import escape

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse, RedirectResponse

from ...core.exceptions import ConfigurationError, ExternalServiceError, OAuthError
from ...core.logging_config import get_logger
from ..services.github_oauth import GitHubOAuthService, render_success_message
from .deps import get_oauth_service

router = APIRouter(prefix="/auth/github", tags=["auth"])
logger = get_logger(__name__)

_SUCCESS_PAGE = """<!DOCTYPE html>
<html>
<head>
  <title>GitHub OAuth Success</title>
  <style>
    body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; margin: 40px; }}
    .success {{ background: #d4edda; border: 1px solid #c3e6cb; color: #155724; padding: 20px; border-radius: 8px; }}
    pre {{ white-space: pre-wrap; }}
  </style>
</head>
<body>
  <div class="success"><pre>{message}</pre></div>
  <script>setTimeout(() => window.close(), 5000);</script>
</body>
</html>
"""


@router.get("")
async def start_sign_in(
    userId: str = "default-user",
    oauth: GitHubOAuthService = Depends(get_oauth_service),
) -> RedirectResponse:
    try:
        url = oauth.create_authorization_url(userId)
    except ConfigurationError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return RedirectResponse(url, status_code=302)


@router.get("/callback", response_class=HTMLResponse)
async def finish_sign_in(
    code: str | None = None,
    state: str | None = None,
    oauth: GitHubOAuthService = Depends(get_oauth_service),
) -> HTMLResponse:
    try:
        completion = await oauth.complete(code, state)
    except OAuthError as exc:
        logger.warning("oauth_callback_rejected", error=str(exc))
        raise HTTPException(status_code=400, detail=f"OAuth Error: {exc}") from exc
    except ExternalServiceError as exc:
        raise HTTPException(status_code=502, detail=f"OAuth Error: {exc}") from exc

    return HTMLResponse(_SUCCESS_PAGE.format(message=escape(render_success_message(completion))))
