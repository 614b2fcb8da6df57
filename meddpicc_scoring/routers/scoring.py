"""
Scoring Router - MEDDPICC Scoring Engine
meddpicc_scoring/routers/scoring.py

Entity scoring against the active configuration, and conversion between
the simple and comprehensive response formats.
"""

from typing import Dict

from fastapi import APIRouter, Depends

from meddpicc_scoring.core.dependencies import (
    get_configuration_store,
    get_response_normalizer,
    get_scoring_service,
)
from meddpicc_scoring.models.assessment import AssessmentResult, ErrorResponse
from meddpicc_scoring.models.response import (
    ComprehensiveFormatRequest,
    ComprehensiveFormatResponse,
    ScoreRequest,
    SimpleFormatRequest,
)
from meddpicc_scoring.scoring.response_normalizer import ParseReport, ResponseNormalizer
from meddpicc_scoring.services.configuration_store import ConfigurationStore
from meddpicc_scoring.services.scoring_service import ScoringService

router = APIRouter(prefix="/api/v1/organizations/{organization_id}", tags=["Scoring"])


@router.post(
    "/scores",
    response_model=AssessmentResult,
    responses={
        404: {"model": ErrorResponse, "description": "Organization has no active configuration"},
        422: {"model": ErrorResponse, "description": "Validation error"},
    },
    summary="Score an entity",
    description=(
        "Scores comprehensive responses, or one simple-format text per pillar, "
        "against the active configuration. Served from cache while fresh."
    ),
)
async def score_entity(
    organization_id: str,
    payload: ScoreRequest,
    service: ScoringService = Depends(get_scoring_service),
) -> AssessmentResult:
    if payload.simple_responses is not None:
        return service.get_score_from_simple(payload.entity_id, payload.simple_responses, organization_id)
    return service.get_score(payload.entity_id, payload.responses, organization_id)


@router.post(
    "/responses/simple",
    response_model=Dict[str, str],
    responses={404: {"model": ErrorResponse, "description": "No active configuration"}},
    summary="Render responses as one text per pillar",
)
async def to_simple_format(
    organization_id: str,
    payload: SimpleFormatRequest,
    store: ConfigurationStore = Depends(get_configuration_store),
    normalizer: ResponseNormalizer = Depends(get_response_normalizer),
) -> Dict[str, str]:
    configuration = store.get_active_configuration(organization_id)
    return normalizer.to_simple_format(payload.responses, configuration)


@router.post(
    "/responses/comprehensive",
    response_model=ComprehensiveFormatResponse,
    responses={404: {"model": ErrorResponse, "description": "No active configuration"}},
    summary="Split one pillar's text into per-question responses",
)
async def to_comprehensive_format(
    organization_id: str,
    payload: ComprehensiveFormatRequest,
    store: ConfigurationStore = Depends(get_configuration_store),
    normalizer: ResponseNormalizer = Depends(get_response_normalizer),
) -> ComprehensiveFormatResponse:
    configuration = store.get_active_configuration(organization_id)
    report = ParseReport()
    responses = normalizer.to_comprehensive_format(payload.pillar_id, payload.text, configuration, report)
    return ComprehensiveFormatResponse(
        pillar_id=payload.pillar_id,
        responses=responses,
        warnings=report.messages,
    )
