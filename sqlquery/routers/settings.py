"""Extension settings endpoints (replace the host's settings panel bindings)"""
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from sqlquery.core.log_sanitize import sanitize_for_log
from sqlquery.core.settings_store import SettingsStore
from sqlquery.deps import ServiceContainer, get_services


router = APIRouter(prefix="/settings", tags=["Settings"])


def _get_store(extension: str, services: ServiceContainer) -> SettingsStore:
    store = services.stores.get(extension)
    if store is None:
        raise HTTPException(status_code=404, detail=f"Unknown extension: {extension}")
    return store


@router.get("/{extension}")
async def get_settings(extension: str, services: ServiceContainer = Depends(get_services)) -> Dict[str, Any]:
    """Current values; password and apiKey are masked."""
    return sanitize_for_log(_get_store(extension, services).get().model_dump())


@router.patch("/{extension}")
async def update_settings(
    extension: str,
    changes: Dict[str, Any],
    services: ServiceContainer = Depends(get_services),
) -> Dict[str, Any]:
    """Apply field edits one by one, each scheduling the debounced save."""
    store = _get_store(extension, services)
    unknown = sorted(set(changes) - set(store.model.model_fields))
    if unknown:
        raise HTTPException(status_code=422, detail=f"Unknown settings fields: {', '.join(unknown)}")
    for field, value in changes.items():
        store.update(field, value)
    return sanitize_for_log(store.get().model_dump())
