"""
Configuration Router - MEDDPICC Scoring Engine
meddpicc_scoring/routers/configurations.py

Versioned rubric management per organization. The caller's identity arrives
already authenticated in the X-Actor-Id header.
"""

from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Header, Query, status

from meddpicc_scoring.core.dependencies import get_configuration_store
from meddpicc_scoring.models.assessment import ErrorResponse
from meddpicc_scoring.models.configuration import (
    ConfigurationCreate,
    ConfigurationImport,
    ConfigurationResponse,
    SavedConfiguration,
)
from meddpicc_scoring.models.history import ConfigHistoryEntry
from meddpicc_scoring.services.configuration_store import ConfigurationStore

router = APIRouter(
    prefix="/api/v1/organizations/{organization_id}/configurations",
    tags=["Configurations"],
)

ERROR_RESPONSES = {
    404: {"model": ErrorResponse, "description": "Configuration not found"},
    409: {"model": ErrorResponse, "description": "Concurrent change committed first; retry"},
    422: {"model": ErrorResponse, "description": "Configuration validation failed"},
    503: {"model": ErrorResponse, "description": "Storage unavailable"},
}


#  Routes

@router.post(
    "",
    response_model=SavedConfiguration,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
    summary="Save a new configuration version",
    description="Validates and persists a new version. Pass activate=true to make it active immediately.",
)
async def save_configuration(
    organization_id: str,
    payload: ConfigurationCreate,
    activate: bool = Query(default=False),
    actor_id: Optional[str] = Header(default=None, alias="X-Actor-Id"),
    store: ConfigurationStore = Depends(get_configuration_store),
) -> SavedConfiguration:
    saved = store.save_configuration(
        organization_id,
        payload.pillars,
        payload.thresholds,
        actor_id,
        reason=payload.reason,
        text_scoring=payload.text_scoring,
        litmus_test=payload.litmus_test,
        stage_gates=payload.stage_gates,
    )
    if activate:
        store.activate_configuration(organization_id, saved.version, actor_id, reason=payload.reason)
    return saved


@router.get(
    "",
    response_model=List[ConfigurationResponse],
    summary="List configuration versions",
)
async def list_configurations(
    organization_id: str,
    store: ConfigurationStore = Depends(get_configuration_store),
) -> List[ConfigurationResponse]:
    return [ConfigurationResponse.from_configuration(c) for c in store.list_configurations(organization_id)]


@router.get(
    "/active",
    response_model=ConfigurationResponse,
    responses=ERROR_RESPONSES,
    summary="Get the active configuration",
)
async def get_active_configuration(
    organization_id: str,
    store: ConfigurationStore = Depends(get_configuration_store),
) -> ConfigurationResponse:
    return ConfigurationResponse.from_configuration(store.get_active_configuration(organization_id))


@router.get(
    "/history",
    response_model=List[ConfigHistoryEntry],
    summary="Configuration change history, newest first",
)
async def get_history(
    organization_id: str,
    configuration_id: Optional[UUID] = Query(default=None),
    store: ConfigurationStore = Depends(get_configuration_store),
) -> List[ConfigHistoryEntry]:
    return store.get_history(organization_id, configuration_id)


@router.get(
    "/export",
    responses=ERROR_RESPONSES,
    summary="Export a configuration document",
    description="Exports the active version unless a version is given.",
)
async def export_configuration(
    organization_id: str,
    version: Optional[int] = Query(default=None, ge=1),
    store: ConfigurationStore = Depends(get_configuration_store),
) -> Dict[str, Any]:
    return store.export_configuration(organization_id, version)


@router.post(
    "/import",
    response_model=SavedConfiguration,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
    summary="Import an exported configuration as a new version",
)
async def import_configuration(
    organization_id: str,
    payload: ConfigurationImport,
    actor_id: Optional[str] = Header(default=None, alias="X-Actor-Id"),
    store: ConfigurationStore = Depends(get_configuration_store),
) -> SavedConfiguration:
    return store.import_configuration(organization_id, payload.payload, actor_id, reason=payload.reason)


@router.post(
    "/clone",
    response_model=SavedConfiguration,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
    summary="Copy another organization's active configuration",
)
async def clone_configuration(
    organization_id: str,
    source_organization_id: str = Query(..., min_length=1),
    actor_id: Optional[str] = Header(default=None, alias="X-Actor-Id"),
    store: ConfigurationStore = Depends(get_configuration_store),
) -> SavedConfiguration:
    return store.clone_configuration(source_organization_id, organization_id, actor_id)


@router.post(
    "/bootstrap",
    response_model=ConfigurationResponse,
    responses=ERROR_RESPONSES,
    summary="Activate the default MEDDPICC rubric",
    description="No-op when the organization already has an active configuration.",
)
async def bootstrap_default_configuration(
    organization_id: str,
    actor_id: Optional[str] = Header(default=None, alias="X-Actor-Id"),
    store: ConfigurationStore = Depends(get_configuration_store),
) -> ConfigurationResponse:
    configuration = store.bootstrap_default_configuration(organization_id, actor_id)
    return ConfigurationResponse.from_configuration(configuration)


@router.get(
    "/{version}",
    response_model=ConfigurationResponse,
    responses=ERROR_RESPONSES,
    summary="Get a configuration version",
)
async def get_configuration(
    organization_id: str,
    version: int,
    store: ConfigurationStore = Depends(get_configuration_store),
) -> ConfigurationResponse:
    return ConfigurationResponse.from_configuration(store.get_configuration(organization_id, version))


@router.post(
    "/{version}/activate",
    response_model=ConfigurationResponse,
    responses=ERROR_RESPONSES,
    summary="Activate a configuration version",
)
async def activate_configuration(
    organization_id: str,
    version: int,
    reason: Optional[str] = Query(default=None, max_length=1000),
    actor_id: Optional[str] = Header(default=None, alias="X-Actor-Id"),
    store: ConfigurationStore = Depends(get_configuration_store),
) -> ConfigurationResponse:
    configuration = store.activate_configuration(organization_id, version, actor_id, reason=reason)
    return ConfigurationResponse.from_configuration(configuration)


@router.post(
    "/{version}/restore",
    response_model=SavedConfiguration,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
    summary="Restore a past version as a new version",
)
async def restore_configuration(
    organization_id: str,
    version: int,
    activate: bool = Query(default=False),
    reason: Optional[str] = Query(default=None, max_length=1000),
    actor_id: Optional[str] = Header(default=None, alias="X-Actor-Id"),
    store: ConfigurationStore = Depends(get_configuration_store),
) -> SavedConfiguration:
    return store.restore_configuration(organization_id, version, actor_id, reason=reason, activate=activate)
