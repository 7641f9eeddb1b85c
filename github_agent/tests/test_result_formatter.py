import pytest

from github_agent.llm.services.result_formatter import NO_RESULTS, ResultFormatter

ISSUE = {
    "number": 68,
    "title": "Crash on start",
    "state": "open",
    "user": {"login": "mona"},
    "body": "Steps to reproduce...",
    "created_at": "2024-03-01T10:00:00Z",
    "updated_at": "2024-03-02T08:30:00Z",
    "labels": [{"name": "bug"}, "triage"],
    "assignees": [{"login": "hubot"}],
    "html_url": "https://github.com/octocat/hello/issues/68",
}
PULL_REQUEST = {
    "number": 12,
    "title": "Add feature",
    "state": "open",
    "user": {"login": "octocat"},
    "head": {"ref": "feature"},
    "base": {"ref": "main"},
    "created_at": "2024-02-10T00:00:00Z",
}
REPOSITORY = {
    "name": "hello",
    "full_name": "octocat/hello",
    "description": "My first repo",
    "language": "Python",
    "stargazers_count": 3,
    "private": False,
    "html_url": "https://github.com/octocat/hello",
}


@pytest.fixture
def formatter():
    return ResultFormatter()


@pytest.mark.parametrize(
    "payload",
    [None, [], {}, "plain text", 42, {"a": {"b": [1, {"c": None}]}}, [[1, 2], [3]]],
)
def test_format_never_raises(formatter, payload):
    assert isinstance(formatter.format("unknown_tool", payload), str)


def test_empty_results(formatter):
    assert formatter.format("unknown_tool", None) == NO_RESULTS
    assert formatter.format("unknown_tool", []) == NO_RESULTS


@pytest.mark.parametrize(
    "element",
    [ISSUE, None, [], [1, 2], [[ISSUE]], "plain text", 7, {"content": [{"type": "text", "text": "hi"}]}],
)
def test_single_element_list_renders_like_element(formatter, element):
    assert formatter.format("unknown_tool", [element]) == formatter.format("unknown_tool", element)


def test_multiple_items_are_numbered(formatter):
    text = formatter.format("unknown_tool", [ISSUE, REPOSITORY])

    assert text.startswith("**Item 1:**\n**#68: Crash on start**")
    assert "**Item 2:**\n**octocat/hello**" in text


def test_pull_request_is_detected_before_issue(formatter):
    pr_text = formatter.format_item(PULL_REQUEST)
    issue_text = formatter.format_item(ISSUE)

    assert pr_text.startswith("**PR #12: Add feature**")
    assert "feature → main" in pr_text
    assert issue_text.startswith("**#68: Crash on start**")
    assert "Labels: bug, triage" in issue_text
    assert "Assignees: @hubot" in issue_text
    assert "Created: 2024-03-01" in issue_text


def test_issue_without_author_still_renders(formatter):
    payload = {key: value for key, value in ISSUE.items() if key != "user"}

    text = formatter.format("get_issue", payload)

    assert "**Crash on start**" in text
    assert "👤 **Author:** unknown" in text
    assert "📅 **Created:** 2024-03-01" in text
    assert "🏷️ **Labels:** `bug` `triage`" in text


def test_long_issue_body_is_truncated(formatter):
    payload = {"number": 1, "title": "Long", "body": "x" * 500}

    text = formatter.format_item(payload)

    assert "x" * 200 + "..." in text
    assert "x" * 201 not in text


def test_content_envelope_is_unwrapped(formatter):
    payload = {"content": [{"type": "text", "text": "first"}, {"type": "text", "text": "second"}]}

    assert formatter.format("unknown_tool", payload) == "first\n\nsecond"


def test_plain_mapping_lists_non_empty_fields(formatter):
    payload = {f"field{index}": index for index in range(1, 15)}
    payload["empty"] = ""

    lines = formatter.format("unknown_tool", payload).splitlines()

    assert lines[0] == "field1: 1"
    assert len(lines) == 10


def test_repository_list_is_capped(formatter):
    repos = [dict(REPOSITORY, name=f"repo{index}") for index in range(12)]

    text = formatter.format("github_repo_list", repos)

    assert text.startswith("📚 **Your Repositories** (showing 10 of 12):")
    assert "**repo9**" in text
    assert "**repo10**" not in text


def test_issue_list_accepts_search_envelope(formatter):
    items = [dict(ISSUE, number=index) for index in range(1, 8)]

    text = formatter.format("list_issues", {"total_count": 7, "items": items})

    assert "(showing 5 of 7)" in text
    assert "• **#5** Crash on start" in text
    assert "👤 mona • open • 2024-03-01" in text


def test_pull_request_list(formatter):
    text = formatter.format("list_pull_requests", [PULL_REQUEST])

    assert text.startswith("🔄 **Pull Requests** (showing 1):")


def test_profile(formatter):
    text = formatter.format("get_me", {"login": "octocat", "name": "The Octocat", "followers": 9})

    assert "**The Octocat**" in text
    assert "@octocat" in text
    assert "0 public repos • 9 followers • 0 following" in text


def test_malformed_known_payload_falls_back_to_raw_json(formatter):
    text = formatter.format("github_repo_list", [{"description": "missing name"}])

    assert text.startswith("Raw result:\n```json")
    assert '"missing name"' in text
