"""HTTP API routers."""

from .auth import router as auth_router
from .chat import router as chat_router
from .debug import router as debug_router
from .health import router as health_router

__all__ = ["auth_router", "chat_router", "debug_router", "health_router"]
