"""Search provider configuration endpoints."""

import structlog
from fastapi import APIRouter, HTTPException, Request, Response

from bplus.api.models.providers import ProviderCreateRequest
from bplus.search.models import NativeAdapter

router = APIRouter(prefix="/api/providers", tags=["providers"])
logger = structlog.get_logger(__name__)


@router.get("")
async def list_providers(app_request: Request):
    """List configured providers and the available native adapters."""
    return {
        "providers": await app_request.app.state.store.list_providers(),
        "native_adapters": [adapter.value for adapter in NativeAdapter],
    }


@router.post("")
async def add_provider(provider_request: ProviderCreateRequest, app_request: Request):
    """Register a provider."""
    return await app_request.app.state.store.add_provider(**provider_request.model_dump())


@router.delete("/{provider_id}", status_code=204)
async def delete_provider(provider_id: int, app_request: Request):
    """Remove a provider."""
    if not await app_request.app.state.store.delete_provider(provider_id):
        raise HTTPException(status_code=404, detail="Provider not found")
    return Response(status_code=204)
