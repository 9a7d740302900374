"""Autocomplete endpoint."""

from fastapi import APIRouter, Query, Request

from bplus.search.suggest import suggest

router = APIRouter(prefix="/api", tags=["suggest"])


@router.get("/suggest")
async def get_suggestions(app_request: Request, q: str = Query(default="")) -> list[str]:
    """Query completions merged across public suggestion endpoints."""
    settings = app_request.app.state.settings
    return await suggest(q, user_agent=settings.user_agent, limit=settings.suggest_limit)
