"""Render GitHub MCP tool results as chat-friendly text.

Known tools get dedicated list/detail templates. Anything else is sniffed
with shape probes, checked in a fixed order (pull request, issue, repository,
MCP content envelope, list, plain mapping), and validated into a typed view
before rendering. ``ResultFormatter.format`` never raises: any failure falls
back to the raw JSON payload.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from ...core.exceptions import FormattingError
from ...core.logging_config import get_logger
from .intent_resolver import LIST_TOOLS

logger = get_logger(__name__)

NO_RESULTS = "No results found."
BODY_PREVIEW_CHARS = 200
MAX_REPOSITORIES = 10
MAX_PULL_REQUESTS = 5
MAX_ISSUES = 5
MAX_TOOLS = 10
MAX_FIELDS = 10

_TOOL_KINDS: dict[str, str] = {
    "github_repo_list": "repo_list",
    "search_repositories": "repo_list",
    "github_pr_list": "pr_list",
    "list_pull_requests": "pr_list",
    "github_issues_list": "issue_list",
    "list_issues": "issue_list",
    "github_issue_get": "issue",
    "get_issue": "issue",
    "github_user_get": "user",
    "get_me": "user",
    LIST_TOOLS: "tools",
}


class _View(BaseModel):
    model_config = ConfigDict(extra="ignore")


class AccountView(_View):
    login: str | None = None


class BranchRefView(_View):
    ref: str | None = None


class IssueView(_View):
    number: int
    title: str
    state: str | None = None
    user: AccountView | None = None
    body: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    html_url: str | None = None
    labels: list[Any] | None = None
    assignees: list[AccountView] | None = None

    @property
    def author(self) -> str | None:
        return self.user.login if self.user else None


class PullRequestView(IssueView):
    head: BranchRefView | None = None
    base: BranchRefView | None = None


class RepositoryView(_View):
    name: str
    full_name: str | None = None
    description: str | None = None
    language: str | None = None
    stargazers_count: int | None = None
    private: bool | None = None
    html_url: str | None = None


class UserProfileView(_View):
    login: str
    name: str | None = None
    bio: str | None = None
    location: str | None = None
    public_repos: int | None = None
    followers: int | None = None
    following: int | None = None
    html_url: str | None = None


class ToolEntryView(_View):
    name: str
    description: str | None = None


# Shape probes ---------------------------------------------------------------


def has_pull_request_shape(item: Any) -> bool:
    return has_issue_shape(item) and "head" in item


def has_issue_shape(item: Any) -> bool:
    return isinstance(item, dict) and bool(item.get("number")) and bool(item.get("title"))


def has_repository_shape(item: Any) -> bool:
    return isinstance(item, dict) and bool(item.get("name")) and bool(item.get("full_name"))


def has_envelope_shape(item: Any) -> bool:
    return isinstance(item, dict) and isinstance(item.get("content"), list)


# Helpers --------------------------------------------------------------------


def _validate(view: type[_View], payload: Any) -> Any:
    try:
        return view.model_validate(payload)
    except ValidationError as exc:
        raise FormattingError(f"{view.__name__} does not fit payload: {exc}") from exc


def _format_date(value: str | None) -> str | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        return value


def _link(url: str | None) -> str | None:
    return f"🔗 [View on GitHub]({url})" if url else None


def _label_name(label: Any) -> str:
    if isinstance(label, dict):
        return str(label.get("name", ""))
    return str(label)


def _list_items(payload: Any) -> list[Any] | None:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get("items"), list):
        return payload["items"]
    return None


def _showing(shown: int, total: int) -> str:
    return f"showing {shown} of {total}" if total > shown else f"showing {shown}"


def _raw_json(payload: Any) -> str:
    try:
        return json.dumps(payload, indent=2, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return repr(payload)


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == {}


class ResultFormatter:
    def format(self, tool_name: str, result: Any) -> str:
        """Render ``result``; falls back to raw JSON instead of raising."""

        try:
            rendered = self._format_known(tool_name, result)
            if rendered is None:
                rendered = self.format_generic(result)
            return rendered
        except Exception as exc:
            logger.warning("result_formatting_failed", tool=tool_name, error=str(exc))
            return f"Raw result:\n```json\n{_raw_json(result)}\n```"

    def _format_known(self, tool_name: str, result: Any) -> str | None:
        kind = _TOOL_KINDS.get(tool_name)
        if kind is None:
            return None

        if kind == "tools":
            if isinstance(result, dict) and isinstance(result.get("tools"), list):
                return self._format_tools(result["tools"])
            return None
        if kind == "issue":
            return self._format_issue_detail(result) if has_issue_shape(result) else None
        if kind == "user":
            if isinstance(result, dict) and result.get("login"):
                return self._format_profile(result)
            return None

        items = _list_items(result)
        if items is None:
            return None
        if kind == "repo_list":
            return self._format_repo_list(items)
        if kind == "pr_list":
            return self._format_pull_request_list(items)
        return self._format_issue_list(items)

    def format_generic(self, result: Any) -> str:
        if result is None:
            return NO_RESULTS
        if isinstance(result, str):
            return result
        if isinstance(result, list):
            if not result:
                return NO_RESULTS
            if len(result) == 1:
                return self.format_generic(result[0])
            return "\n\n".join(
                f"**Item {index}:**\n{self.format_item(item)}"
                for index, item in enumerate(result, start=1)
            )
        return self.format_item(result)

    def format_item(self, item: Any) -> str:
        if not isinstance(item, dict):
            return str(item)
        if has_pull_request_shape(item):
            return self._format_pull_request(_validate(PullRequestView, item))
        if has_issue_shape(item):
            return self._format_issue(_validate(IssueView, item))
        if has_repository_shape(item):
            return self._format_repository(_validate(RepositoryView, item))
        if has_envelope_shape(item):
            return self._format_envelope(item["content"])

        fields = [(key, value) for key, value in item.items() if not _is_empty(value)]
        if not fields:
            return _raw_json(item)
        return "\n".join(f"{key}: {value}" for key, value in fields[:MAX_FIELDS])

    # Single items -------------------------------------------------------

    def _format_pull_request(self, pr: PullRequestView) -> str:
        lines = [f"**PR #{pr.number}: {pr.title}**"]
        if pr.state:
            lines.append(f"Status: {pr.state}")
        if pr.author:
            lines.append(f"Author: {pr.author}")
        if pr.head and pr.head.ref and pr.base and pr.base.ref:
            lines.append(f"{pr.head.ref} → {pr.base.ref}")
        created = _format_date(pr.created_at)
        if created:
            lines.append(f"Created: {created}")
        link = _link(pr.html_url)
        if link:
            lines.append(link)
        return "\n".join(lines)

    def _format_issue(self, issue: IssueView) -> str:
        lines = [f"**#{issue.number}: {issue.title}**"]
        if issue.state:
            lines.append(f"Status: {issue.state}")
        if issue.author:
            lines.append(f"Author: {issue.author}")
        created = _format_date(issue.created_at)
        if created:
            lines.append(f"Created: {created}")
        if issue.labels:
            lines.append("Labels: " + ", ".join(_label_name(label) for label in issue.labels))
        if issue.assignees:
            lines.append(
                "Assignees: "
                + ", ".join(f"@{assignee.login}" for assignee in issue.assignees if assignee.login)
            )
        if issue.body:
            preview = issue.body
            if len(preview) > BODY_PREVIEW_CHARS:
                preview = preview[:BODY_PREVIEW_CHARS] + "..."
            lines.append(f"\nDescription:\n{preview}")
        link = _link(issue.html_url)
        if link:
            lines.append(f"\n{link}")
        return "\n".join(lines)

    def _format_repository(self, repo: RepositoryView) -> str:
        lines = [f"**{repo.full_name or repo.name}**"]
        if repo.description:
            lines.append(repo.description)
        if repo.language:
            lines.append(f"Language: {repo.language}")
        if repo.stargazers_count is not None:
            lines.append(f"⭐ {repo.stargazers_count} stars")
        link = _link(repo.html_url)
        if link:
            lines.append(link)
        return "\n".join(lines)

    def _format_envelope(self, content: list[Any]) -> str:
        parts = []
        for block in content:
            if isinstance(block, dict) and block.get("type") == "text":
                parts.append(str(block.get("text", "")))
            else:
                parts.append(_raw_json(block))
        return "\n\n".join(parts) if parts else NO_RESULTS

    # Known tools ----------------------------------------------------------

    def _format_repo_list(self, items: list[Any]) -> str:
        if not items:
            return "No repositories found."
        shown = [_validate(RepositoryView, item) for item in items[:MAX_REPOSITORIES]]
        entries = "\n\n".join(self._repo_entry(repo) for repo in shown)
        return f"📚 **Your Repositories** ({_showing(len(shown), len(items))}):\n\n{entries}"

    def _format_pull_request_list(self, items: list[Any]) -> str:
        if not items:
            return "No pull requests found."
        shown = [_validate(PullRequestView, item) for item in items[:MAX_PULL_REQUESTS]]
        entries = "\n\n".join(self._list_entry(pr) for pr in shown)
        return f"🔄 **Pull Requests** ({_showing(len(shown), len(items))}):\n\n{entries}"

    def _format_issue_list(self, items: list[Any]) -> str:
        if not items:
            return "No issues found."
        shown = [_validate(IssueView, item) for item in items[:MAX_ISSUES]]
        entries = "\n\n".join(self._list_entry(issue) for issue in shown)
        return f"🐛 **Issues** ({_showing(len(shown), len(items))}):\n\n{entries}"

    @staticmethod
    def _repo_entry(repo: RepositoryView) -> str:
        lines = [
            f"• **{repo.name}** {'🔒' if repo.private else '🌍'}",
            f"  {repo.description or 'No description'}",
        ]
        if repo.html_url:
            lines.append(f"  {repo.html_url}")
        return "\n".join(lines)

    @staticmethod
    def _list_entry(issue: IssueView) -> str:
        meta = " • ".join(
            part
            for part in (
                f"👤 {issue.author}" if issue.author else None,
                issue.state,
                _format_date(issue.created_at),
            )
            if part
        )
        lines = [f"• **#{issue.number}** {issue.title}"]
        if meta:
            lines.append(f"  {meta}")
        if issue.html_url:
            lines.append(f"  {issue.html_url}")
        return "\n".join(lines)

    def _format_issue_detail(self, payload: dict[str, Any]) -> str:
        issue = _validate(IssueView, payload)
        lines = [
            f"🐛 **Issue #{issue.number}**",
            "",
            f"**{issue.title}**",
            "",
            f"📝 **Description:**\n{issue.body or 'No description provided'}",
            "",
            f"👤 **Author:** {issue.author or 'unknown'}",
            f"📊 **State:** {issue.state or 'unknown'}",
        ]
        created = _format_date(issue.created_at)
        if created:
            lines.append(f"📅 **Created:** {created}")
        updated = _format_date(issue.updated_at)
        if updated:
            lines.append(f"🔄 **Updated:** {updated}")
        if issue.labels:
            labels = " ".join(f"`{_label_name(label)}`" for label in issue.labels)
            lines.append(f"🏷️ **Labels:** {labels}")
        if issue.assignees:
            assignees = ", ".join(f"@{a.login}" for a in issue.assignees if a.login)
            lines.append(f"👥 **Assignees:** {assignees}")
        link = _link(issue.html_url)
        if link:
            lines.append(f"\n{link}")
        return "\n".join(lines)

    def _format_profile(self, payload: dict[str, Any]) -> str:
        profile = _validate(UserProfileView, payload)
        stats = (
            f"{profile.public_repos or 0} public repos • "
            f"{profile.followers or 0} followers • "
            f"{profile.following or 0} following"
        )
        lines = [
            "👤 **GitHub Profile**",
            "",
            f"**{profile.name or profile.login}**",
            f"@{profile.login}",
            profile.bio or "No bio",
            "",
            f"📍 {profile.location or 'Location not specified'}",
            f"📊 {stats}",
        ]
        if profile.html_url:
            lines.append(f"🔗 {profile.html_url}")
        return "\n".join(lines)

    def _format_tools(self, tools: list[Any]) -> str:
        shown = [_validate(ToolEntryView, tool) for tool in tools[:MAX_TOOLS]]
        if not shown:
            return "🛠️ **Available GitHub Tools**: none reported by the server."
        entries = "\n".join(
            f"• **{tool.name}**: {tool.description or 'No description'}" for tool in shown
        )
        return f"🛠️ **Available GitHub Tools** ({_showing(len(shown), len(tools))}):\n\n{entries}"
