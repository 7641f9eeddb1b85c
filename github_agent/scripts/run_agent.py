"""Run the GitHub MCP agent service locally.

Development environments get uvicorn's auto-reload; everything else serves the
imported app object directly.
"""

from __future__ import annotations

import uvicorn

from github_agent.core.config import get_settings


def main() -> None:
    settings = get_settings()
    if settings.app_env == "development":
        uvicorn.run(
            "github_agent.llm.main:app",
            host=settings.agent_host,
            port=settings.agent_port,
            reload=True,
        )
        return

    from github_agent.llm.main import app

    uvicorn.run(
        app,
        host=settings.agent_host,
        port=settings.agent_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
