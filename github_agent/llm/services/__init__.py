"""Service layer exports."""

from .chat_handler import GitHubChatHandler, is_github_request
from .github_oauth import GitHubOAuthService
from .intent_resolver import (
    IntentResolver,
    LLMIntentResolver,
    PatternIntentResolver,
    build_intent_resolver,
    parse_intent,
)
from .result_formatter import ResultFormatter
from .tool_executor import ToolExecutor

__all__ = [
    "GitHubChatHandler",
    "GitHubOAuthService",
    "IntentResolver",
    "LLMIntentResolver",
    "PatternIntentResolver",
    "ResultFormatter",
    "ToolExecutor",
    "build_intent_resolver",
    "is_github_request",
    "parse_intent",
]
