"""Map free-text chat requests onto GitHub MCP tool invocations.

Two strategies share the :class:`IntentResolver` contract:

* :class:`PatternIntentResolver` matches trigger phrases and pulls arguments
  out of the text with regular expressions.
* :class:`LLMIntentResolver` hands the tool catalog to a chat model and parses
  the JSON decision it returns.

``build_intent_resolver`` picks one from configuration.
"""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Protocol

from pydantic import ValidationError

from ...core.exceptions import ConfigurationError, IntentParseError
from ...core.logging_config import get_logger
from ...core.types import IntentResolution, RepositoryRef, ToolDescriptor, ToolInvocation
from ...mcp.catalog import ToolCatalog
from ..schemas.chat import ChatMessage
from ..schemas.decision import ModelDecision

logger = get_logger(__name__)

LIST_TOOLS = "_list_tools"

NEEDS_MORE_INFO_MESSAGE = (
    "I need more specific information about what GitHub operation you want to perform."
)

_OWNER_REPO_RE = re.compile(r"([A-Za-z0-9_-]+)/([A-Za-z0-9_-]+)")
_BARE_REPO_RE = re.compile(
    r"\b(?:repo|repository)\s+(?:(?:named?|called)\s+)?['\"]?([A-Za-z0-9_-]+)['\"]?",
    re.IGNORECASE,
)
_FILE_PATH_RE = re.compile(r"\b(?:file|path)\s+['\"]?([A-Za-z0-9_./-]+)['\"]?", re.IGNORECASE)
_ISSUE_TITLE_RE = re.compile(r"\b(?:issue|bug)\s+['\"]([^'\"]+)['\"]", re.IGNORECASE)
_ISSUE_NUMBER_RE = re.compile(r"#(\d+)|issue\s+(\d+)|number\s+(\d+)", re.IGNORECASE)
_TOKEN_RE = re.compile(r"[a-z0-9]+")


class CompletionModel(Protocol):
    async def complete(self, messages: Iterable[ChatMessage], **kwargs: Any) -> str: ...


class IntentResolver(ABC):
    """Turn one user message into tool invocations or a request for detail."""

    @abstractmethod
    async def resolve(self, text: str) -> IntentResolution:
        raise NotImplementedError


# ---------------------------------------------------------------------------
# Pattern strategy
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ParsedRequest:
    raw: str
    lowered: str


@dataclass(frozen=True, slots=True)
class ExtractionContext:
    default_repo: RepositoryRef | None = None
    current_user: str | None = None


def _trigger_pattern(trigger: str) -> str:
    """Substring match that may not start or end inside a word."""

    prefix = r"(?<![a-z0-9])" if trigger[0].isalnum() else ""
    suffix = r"(?![a-z0-9])" if trigger[-1].isalnum() else ""
    return f"{prefix}{re.escape(trigger)}{suffix}"


Extraction = tuple[dict[str, Any], str]
Extractor = Callable[[ParsedRequest, ExtractionContext], Extraction | None]


@dataclass(frozen=True, slots=True)
class IntentCategory:
    key: str
    triggers: tuple[str, ...]
    tool_name: str
    extract: Extractor
    aliases: tuple[str, ...] = ()

    def matches(self, text: str) -> bool:
        """True when a trigger occurs in ``text`` on word edges.

        Unlike a plain substring test, ``"open pr"`` does not match
        ``"open prs"`` and ``"create pr"`` does not match ``"create private"``.
        """

        return any(re.search(_trigger_pattern(trigger), text) for trigger in self.triggers)

    def pick_tool_name(self, catalog_names: set[str]) -> str:
        for candidate in (self.tool_name, *self.aliases):
            if candidate in catalog_names:
                return candidate
        return self.tool_name


def extract_repo_reference(text: str, context: ExtractionContext) -> RepositoryRef | None:
    match = _OWNER_REPO_RE.search(text)
    if match:
        return RepositoryRef(owner=match.group(1), name=match.group(2))

    match = _BARE_REPO_RE.search(text)
    if match:
        owner = context.current_user or (
            context.default_repo.owner if context.default_repo else None
        )
        if owner:
            return RepositoryRef(owner=owner, name=match.group(1))

    return context.default_repo


def extract_repo_name(text: str) -> str | None:
    match = _BARE_REPO_RE.search(text)
    return match.group(1) if match else None


def extract_issue_number(text: str) -> int | None:
    match = _ISSUE_NUMBER_RE.search(text)
    if not match:
        return None
    return int(next(group for group in match.groups() if group))


def extract_issue_title(text: str) -> str | None:
    match = _ISSUE_TITLE_RE.search(text)
    return match.group(1).strip() if match else None


def extract_file_path(text: str) -> str | None:
    match = _FILE_PATH_RE.search(text)
    return match.group(1).rstrip(".") if match else None


def _without(text: str, fragment: str | None) -> str:
    return text.replace(fragment, " ") if fragment else text


def _repo_args(repo: RepositoryRef) -> dict[str, Any]:
    return {"owner": repo.owner, "repo": repo.name}


def _list_repositories(request: ParsedRequest, context: ExtractionContext) -> Extraction | None:
    return {"type": "owner"}, "Listing your repositories"


def _create_repository(request: ParsedRequest, context: ExtractionContext) -> Extraction | None:
    name = extract_repo_name(request.raw)
    if not name:
        return None
    return {"name": name, "private": False}, f"Creating repository '{name}'"


def _list_pull_requests(request: ParsedRequest, context: ExtractionContext) -> Extraction | None:
    repo = extract_repo_reference(request.raw, context)
    if repo is None:
        return None
    return (
        {**_repo_args(repo), "state": "open"},
        f"Listing pull requests for {repo.full_name}",
    )


def _create_pull_request(request: ParsedRequest, context: ExtractionContext) -> Extraction | None:
    repo = extract_repo_reference(request.raw, context)
    if repo is None:
        return None
    arguments = {
        **_repo_args(repo),
        "title": "New Pull Request",
        "head": "feature-branch",
        "base": "main",
    }
    return arguments, f"Creating pull request for {repo.full_name}"


def _list_issues(request: ParsedRequest, context: ExtractionContext) -> Extraction | None:
    repo = extract_repo_reference(request.raw, context)
    if repo is None:
        return None
    return {**_repo_args(repo), "state": "open"}, f"Listing issues for {repo.full_name}"


def _get_issue(request: ParsedRequest, context: ExtractionContext) -> Extraction | None:
    number = extract_issue_number(request.raw)
    repo = extract_repo_reference(request.raw, context)
    if number is None or repo is None:
        return None
    return (
        {**_repo_args(repo), "issue_number": number},
        f"Getting issue #{number} from {repo.full_name}",
    )


def _create_issue(request: ParsedRequest, context: ExtractionContext) -> Extraction | None:
    title = extract_issue_title(request.raw)
    repo = extract_repo_reference(_without(request.raw, title), context)
    if repo is None:
        return None
    arguments = {
        **_repo_args(repo),
        "title": title or "New Issue",
        "body": "Created via the GitHub chat agent",
    }
    return arguments, f"Creating issue in {repo.full_name}"


def _get_file(request: ParsedRequest, context: ExtractionContext) -> Extraction | None:
    path = extract_file_path(request.raw)
    if not path:
        return None
    repo = extract_repo_reference(_without(request.raw, path), context)
    if repo is None:
        return None
    return {**_repo_args(repo), "path": path}, f"Getting file {path} from {repo.full_name}"


def _get_profile(request: ParsedRequest, context: ExtractionContext) -> Extraction | None:
    return {}, "Getting your GitHub profile information"


def _list_tools(request: ParsedRequest, context: ExtractionContext) -> Extraction | None:
    return {}, "Listing available GitHub tools"


INTENT_CATEGORIES: tuple[IntentCategory, ...] = (
    IntentCategory(
        key="repo_list",
        triggers=("list repos", "show repositories", "my repos", "repositories"),
        tool_name="github_repo_list",
        extract=_list_repositories,
    ),
    IntentCategory(
        key="repo_create",
        triggers=("create repo", "new repository"),
        tool_name="github_repo_create",
        aliases=("create_repository",),
        extract=_create_repository,
    ),
    IntentCategory(
        key="pr_list",
        triggers=("list prs", "pull requests", "show prs", "open prs"),
        tool_name="github_pr_list",
        aliases=("list_pull_requests",),
        extract=_list_pull_requests,
    ),
    IntentCategory(
        key="pr_create",
        triggers=("create pr", "new pull request", "open pr"),
        tool_name="github_pr_create",
        aliases=("create_pull_request",),
        extract=_create_pull_request,
    ),
    IntentCategory(
        key="issue_list",
        triggers=("list issues", "show issues", "open issues"),
        tool_name="github_issues_list",
        aliases=("list_issues",),
        extract=_list_issues,
    ),
    IntentCategory(
        key="issue_get",
        triggers=("issue #", "issue number", "show issue", "get issue"),
        tool_name="github_issue_get",
        aliases=("get_issue",),
        extract=_get_issue,
    ),
    IntentCategory(
        key="issue_create",
        triggers=("create issue", "new issue", "report bug"),
        tool_name="github_issue_create",
        aliases=("create_issue",),
        extract=_create_issue,
    ),
    IntentCategory(
        key="file_get",
        triggers=("show file", "get file", "read file"),
        tool_name="github_file_get",
        aliases=("get_file_contents",),
        extract=_get_file,
    ),
    IntentCategory(
        key="user_profile",
        triggers=("my profile", "user info", "who am i"),
        tool_name="github_user_get",
        aliases=("get_me",),
        extract=_get_profile,
    ),
)

# Only consulted when no category above produced an invocation.
TOOLS_FALLBACK = IntentCategory(
    key="tools",
    triggers=("github", "tools", "help", "what can you do"),
    tool_name=LIST_TOOLS,
    extract=_list_tools,
)


def match_catalog_tool(text: str, tools: Iterable[ToolDescriptor]) -> ToolDescriptor | None:
    """Return the first tool whose name shares a word with ``text``."""

    request_tokens = set(_TOKEN_RE.findall(text.lower()))
    for tool in tools:
        tool_tokens = {token for token in re.split(r"[_\-\s]+", tool.name.lower()) if len(token) >= 3}
        if tool_tokens & request_tokens:
            return tool
    return None


def parse_intent(
    text: str,
    *,
    tools: Iterable[ToolDescriptor] = (),
    default_repo: RepositoryRef | None = None,
    current_user: str | None = None,
) -> IntentResolution:
    """Resolve ``text`` with the pattern rules; pure and deterministic.

    Categories are evaluated independently, so one message can yield several
    invocations (``"list repos and show issue #5 in octocat/hello"`` hits both
    the repository listing and the single-issue rules).
    """

    raw = text.strip()
    request = ParsedRequest(raw=raw, lowered=raw.lower())
    context = ExtractionContext(default_repo=default_repo, current_user=current_user)
    tools = list(tools)
    catalog_names = {tool.name for tool in tools}

    invocations: list[ToolInvocation] = []
    for category in INTENT_CATEGORIES:
        invocation = _apply_category(category, request, context, catalog_names)
        if invocation is not None:
            invocations.append(invocation)

    if not invocations:
        invocation = _apply_category(TOOLS_FALLBACK, request, context, catalog_names)
        if invocation is not None:
            invocations.append(invocation)

    if not invocations:
        tool = match_catalog_tool(request.lowered, tools)
        if tool is not None:
            arguments = _repo_args(default_repo) if default_repo else {}
            invocations.append(
                ToolInvocation(
                    tool_name=tool.name,
                    arguments=arguments,
                    description=f"Using {tool.name} based on your request",
                )
            )

    if not invocations:
        return IntentResolution(needs_more_info=True, missing_info=NEEDS_MORE_INFO_MESSAGE)
    return IntentResolution(invocations=invocations)


def _apply_category(
    category: IntentCategory,
    request: ParsedRequest,
    context: ExtractionContext,
    catalog_names: set[str],
) -> ToolInvocation | None:
    if not category.matches(request.lowered):
        return None

    extraction = category.extract(request, context)
    if extraction is None:
        logger.debug("intent_category_incomplete", category=category.key)
        return None

    arguments, description = extraction
    return ToolInvocation(
        tool_name=category.pick_tool_name(catalog_names),
        arguments=arguments,
        description=description,
    )


class PatternIntentResolver(IntentResolver):
    def __init__(self, catalog: ToolCatalog, *, current_user: str | None = None) -> None:
        self._catalog = catalog
        self._current_user = current_user

    async def resolve(self, text: str) -> IntentResolution:
        tools = await self._catalog.get_available_tools()
        resolution = parse_intent(
            text,
            tools=tools,
            default_repo=self._catalog.get_default_repository(),
            current_user=self._current_user,
        )
        logger.info(
            "intent_resolved",
            strategy="pattern",
            tools=[invocation.tool_name for invocation in resolution.invocations],
            needs_more_info=resolution.needs_more_info,
        )
        return resolution


# ---------------------------------------------------------------------------
# Model-delegated strategy
# ---------------------------------------------------------------------------

_DECISION_INSTRUCTIONS = """Please analyze this request and determine:
1. Which GitHub MCP tool(s) to use
2. What parameters are needed
3. How to extract parameters from the user request

Respond with a JSON object in this format:
{
  "toolCalls": [
    {
      "toolName": "exact_tool_name",
      "parameters": {
        "param1": "value1",
        "param2": "value2"
      },
      "reasoning": "Why this tool was chosen"
    }
  ],
  "needsMoreInfo": false,
  "missingInfo": "Description of what info is needed if needsMoreInfo is true"
}

If the user request is unclear or missing required parameters, set needsMoreInfo to true."""


def extract_json_object(text: str) -> str | None:
    """Return the first balanced ``{...}`` span in ``text``.

    Braces inside JSON string literals are ignored. Returns None when no
    opening brace is ever closed.
    """

    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start : index + 1]
        start = text.find("{", start + 1)
    return None


def parse_model_decision(reply: str) -> ModelDecision:
    candidate = extract_json_object(reply)
    if candidate is None:
        raise IntentParseError("No JSON object found in model response")

    try:
        payload = json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise IntentParseError(f"Model response is not valid JSON: {exc}") from exc

    if not isinstance(payload, dict):
        raise IntentParseError("Model response must be a JSON object")

    try:
        return ModelDecision.model_validate(payload)
    except ValidationError as exc:
        raise IntentParseError(f"Model decision has an unexpected shape: {exc}") from exc


def decision_to_resolution(decision: ModelDecision) -> IntentResolution:
    if decision.needs_more_info or not decision.tool_calls:
        return IntentResolution(
            needs_more_info=True,
            missing_info=decision.missing_info or NEEDS_MORE_INFO_MESSAGE,
        )

    return IntentResolution(
        invocations=[
            ToolInvocation(
                tool_name=call.tool_name,
                arguments=dict(call.parameters),
                description=call.reasoning or f"calling {call.tool_name}",
            )
            for call in decision.tool_calls
        ]
    )


class LLMIntentResolver(IntentResolver):
    def __init__(self, catalog: ToolCatalog, model: CompletionModel) -> None:
        self._catalog = catalog
        self._model = model

    async def build_messages(self, text: str) -> list[ChatMessage]:
        system_prompt = await self._catalog.create_system_prompt()
        return [
            ChatMessage(role="system", content=system_prompt),
            ChatMessage(
                role="user",
                content=f'User Request: "{text}"\n\n{_DECISION_INSTRUCTIONS}',
            ),
        ]

    async def resolve(self, text: str) -> IntentResolution:
        messages = await self.build_messages(text)
        reply = await self._model.complete(messages)

        try:
            decision = parse_model_decision(reply)
        except IntentParseError:
            logger.warning("intent_parse_failed", strategy="llm", reply_preview=reply[:300])
            raise

        resolution = decision_to_resolution(decision)
        logger.info(
            "intent_resolved",
            strategy="llm",
            tools=[invocation.tool_name for invocation in resolution.invocations],
            needs_more_info=resolution.needs_more_info,
        )
        return resolution


def build_intent_resolver(
    strategy: str,
    catalog: ToolCatalog,
    *,
    model: CompletionModel | None = None,
    current_user: str | None = None,
) -> IntentResolver:
    """Construct the resolver selected by configuration."""

    if strategy == "pattern":
        return PatternIntentResolver(catalog, current_user=current_user)
    if strategy == "llm":
        if model is None:
            from .llm_client import get_llm_client

            model = get_llm_client()
        return LLMIntentResolver(catalog, model)
    raise ConfigurationError(f"Unknown intent strategy: {strategy}")
