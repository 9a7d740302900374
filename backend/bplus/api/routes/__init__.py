"""API routes."""

from bplus.api.routes.conversations import router as conversations_router
from bplus.api.routes.health import router as health_router
from bplus.api.routes.models import router as models_router
from bplus.api.routes.providers import router as providers_router
from bplus.api.routes.research import router as research_router
from bplus.api.routes.suggest import router as suggest_router

__all__ = [
    "health_router",
    "conversations_router",
    "providers_router",
    "research_router",
    "suggest_router",
    "models_router",
]
