from fastapi import APIRouter, Depends, Request

from server.dependencies.auth import verify_api_key
from server.models.responses import ProviderInfo

router = APIRouter(prefix="/providers", tags=["providers"])


@router.get("")
async def get_providers(request: Request, _: None = Depends(verify_api_key)) -> dict[str, ProviderInfo]:
    """Return the selected and available engines per provider type."""
    settings = request.app.state.settings_manager.get_all()
    return {
        provider_type: ProviderInfo(
            engine=settings.get(f"{provider_type}_engine", ""),
            configured=manager.is_configured(),
            available=manager.get_available_engines(),
        )
        for provider_type, manager in request.app.state.provider_managers.items()
    }
