"""LLM model listing endpoint."""

from fastapi import APIRouter, Query, Request

from bplus.llm.models import list_models

router = APIRouter(prefix="/api", tags=["models"])


@router.get("/models")
async def get_models(app_request: Request, provider: str = Query(default="")):
    """List models offered by an LLM backend."""
    return await list_models(provider, app_request.app.state.settings)
