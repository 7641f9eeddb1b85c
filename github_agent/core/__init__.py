"""Core infrastructure utilities."""

from .config import AgentSettings, get_settings
from .credential_store import CredentialStore
from .logging_config import configure_logging, get_logger

__all__ = [
    "AgentSettings",
    "CredentialStore",
    "configure_logging",
    "get_logger",
    "get_settings",
]
