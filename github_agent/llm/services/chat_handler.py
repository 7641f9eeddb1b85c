"""Per-message GitHub pipeline: credential gate, intent, execution, replies."""

from __future__ import annotations

from typing import Any, Callable, Protocol
from urllib.parse import quote

from ...core.config import AgentSettings
from ...core.credential_store import CredentialStore
from ...core.exceptions import (
    AgentError,
    IntentParseError,
    MissingCredentialError,
    RemoteToolError,
)
from ...core.logging_config import get_logger
from ...core.types import CredentialRecord, ToolDescriptor, ToolInvocationResult
from ...mcp.catalog import ToolCatalog
from ...mcp.client import RemoteToolClient
from .intent_resolver import CompletionModel, build_intent_resolver
from .result_formatter import ResultFormatter
from .tool_executor import ToolExecutor, describe_invocations

logger = get_logger(__name__)

GITHUB_KEYWORDS = ("github", "repo", "pull request", "mcp", "tool", "issue")

NO_TOOLS_MESSAGE = (
    "⚠️ No GitHub tools are currently available from the MCP server.\n"
    "This might be a temporary issue. Please try again later."
)
CLARIFICATION_MESSAGE = (
    "🤔 I'm having trouble understanding your request. Could you be more specific?\n\n"
    "Try something like:\n"
    '• "Show me issue #68"\n'
    '• "List repositories for microsoft"\n'
    '• "Create an issue in my-repo"'
)
FAILURE_HINT = "This might be due to permissions, network issues, or the tool not being available."


class ReplyContext(Protocol):
    """What the chat framework hands the handler for answering."""

    async def send_text(self, text: str) -> None: ...

    async def send_card(self, card: dict[str, Any]) -> None: ...


def is_github_request(text: str | None) -> bool:
    lowered = (text or "").lower()
    return any(keyword in lowered for keyword in GITHUB_KEYWORDS)


def build_sign_in_card(login_url: str) -> dict[str, Any]:
    """Adaptive Card asking the user to connect their GitHub account."""

    return {
        "type": "AdaptiveCard",
        "$schema": "http://adaptivecards.io/schemas/adaptive-card.json",
        "version": "1.3",
        "body": [
            {
                "type": "TextBlock",
                "size": "Medium",
                "weight": "Bolder",
                "text": "GitHub Authentication Required",
                "wrap": True,
            },
            {
                "type": "TextBlock",
                "text": (
                    "To use GitHub tools and access your repositories, "
                    "you need to authenticate with GitHub."
                ),
                "wrap": True,
            },
            {
                "type": "TextBlock",
                "text": (
                    "• List your repositories\n• View pull requests and issues\n"
                    "• Create new repos and issues\n• Access file contents"
                ),
                "wrap": True,
            },
        ],
        "actions": [
            {
                "type": "Action.OpenUrl",
                "title": "🔗 Sign in to GitHub",
                "url": login_url,
                "style": "positive",
            }
        ],
    }


def render_result(result: ToolInvocationResult) -> str:
    if not result.success:
        return f"❌ **{result.tool_name}** failed: {result.error}\n\n{FAILURE_HINT}"
    if result.formatted_result:
        return f"✅ **{result.tool_name}**\n\n{result.formatted_result}"
    return f"✅ **{result.tool_name}** completed successfully."


def render_tool_list(tools: list[ToolDescriptor]) -> str:
    listing = "\n".join(f"• **{tool.name}**: {tool.description}" for tool in tools)
    return (
        f"🛠️ **Available GitHub Tools:**\n\n{listing}\n\n"
        "You can use natural language to request GitHub operations, "
        "and I'll choose the best tool automatically!"
    )


ClientFactory = Callable[[str | None], RemoteToolClient]


class GitHubChatHandler:
    """Handle one GitHub-related chat message end to end.

    Every failure is turned into a chat reply; nothing propagates to the chat
    framework. A fresh MCP client is built per message with the user's token.
    """

    def __init__(
        self,
        settings: AgentSettings,
        credential_store: CredentialStore,
        *,
        client_factory: ClientFactory | None = None,
        model: CompletionModel | None = None,
        formatter: ResultFormatter | None = None,
    ) -> None:
        self._settings = settings
        self._credentials = credential_store
        self._client_factory = client_factory or self._default_client
        self._model = model
        self._formatter = formatter or ResultFormatter()

    def _default_client(self, token: str | None) -> RemoteToolClient:
        return RemoteToolClient(
            str(self._settings.github_mcp_url),
            token,
            timeout=self._settings.github_mcp_timeout_seconds,
        )

    def create_client(self, token: str | None) -> RemoteToolClient:
        """Build an MCP client; without a token the server sees an anonymous caller."""

        return self._client_factory(token)

    def login_url(self, user_id: str) -> str:
        base_url = self._settings.bot_endpoint.rstrip("/")
        return f"{base_url}/auth/github?userId={quote(user_id, safe='')}"

    async def handle(self, user_id: str, text: str, reply: ReplyContext) -> None:
        logger.info("github_message_received", user_id=user_id, text_preview=text[:120])
        try:
            record = await self._require_credential(user_id)
        except MissingCredentialError:
            logger.info("github_auth_required", user_id=user_id)
            await reply.send_card(build_sign_in_card(self.login_url(user_id)))
            return

        client = self.create_client(record.access_token)
        try:
            await self._run(client, record, text, reply)
        except IntentParseError as exc:
            logger.warning("github_intent_unparsed", user_id=user_id, error=str(exc))
            await reply.send_text(CLARIFICATION_MESSAGE)
        except RemoteToolError as exc:
            logger.error("github_mcp_unavailable", user_id=user_id, error=str(exc))
            await reply.send_text(f"❌ **GitHub MCP server unavailable**: {exc}\n\n{FAILURE_HINT}")
        except AgentError as exc:
            logger.error("github_request_failed", user_id=user_id, error=str(exc))
            await reply.send_text(
                f"❌ **Error processing GitHub request**: {exc}\n\n"
                "Please try again or contact support if the issue persists."
            )
        except Exception as exc:
            logger.exception("github_request_crashed", user_id=user_id)
            await reply.send_text(
                f"❌ **Error processing GitHub request**: {exc}\n\n"
                "Please try again or contact support if the issue persists."
            )
        finally:
            await client.disconnect()

    async def _require_credential(self, user_id: str) -> CredentialRecord:
        record = await self._credentials.get_valid(user_id)
        if record is None:
            raise MissingCredentialError(user_id)
        return record

    async def _run(
        self,
        client: RemoteToolClient,
        record: CredentialRecord,
        text: str,
        reply: ReplyContext,
    ) -> None:
        await client.connect()
        catalog = ToolCatalog(
            client,
            default_owner=self._settings.github_default_owner,
            default_repo=self._settings.github_default_repo,
        )

        tools = await catalog.get_available_tools()
        if not tools:
            await reply.send_text(NO_TOOLS_MESSAGE)
            return

        lowered = text.lower()
        if "available" in lowered and "tool" in lowered:
            await reply.send_text(render_tool_list(tools))
            return

        resolver = build_intent_resolver(
            self._settings.intent_strategy,
            catalog,
            model=self._model,
            current_user=record.login,
        )
        resolution = await resolver.resolve(text)

        if resolution.needs_more_info or not resolution.invocations:
            await reply.send_text(
                f"🤔 I need more information to help you.\n\n{resolution.missing_info}\n\n"
                "Please provide the missing details and try again."
            )
            return

        await reply.send_text(f"🔄 {describe_invocations(resolution.invocations)}...")

        executor = ToolExecutor(client, catalog, self._formatter)
        results = await executor.execute(resolution.invocations)
        for result in results:
            await reply.send_text(render_result(result))
