from pydantic import BaseModel, Field
from datetime import datetime
from typing import Dict, List, Optional

from meddpicc_scoring.models.enumerations import RiskLevel


class PillarBreakdown(BaseModel):
    """
    Score detail for one pillar.
    """

    pillar_id: str
    name: str
    weight: float = Field(..., description="Pillar weight from the configuration")
    raw_points: float = Field(..., ge=0, description="Points earned, capped at max_points")
    max_points: float = Field(..., ge=0, description="Sum of the pillar's question maximums")
    percentage: float = Field(..., ge=0, le=100, description="raw_points / max_points as a percentage")
    weighted_score: float = Field(..., description="Contribution to the total score")
    answered_questions: int = Field(..., ge=0)
    total_questions: int = Field(..., ge=0)


class QualificationScore(BaseModel):
    """
    Output of the scoring engine for one set of responses.
    Identical inputs always produce an identical QualificationScore.
    """

    total_score: float = Field(..., description="Weighted total; 0-100 when weights sum to 100")
    risk_level: RiskLevel
    per_pillar_breakdown: List[PillarBreakdown]
    config_version_used: int = Field(..., ge=1)
    next_actions: List[str] = Field(default_factory=list)
    litmus_test_score: Optional[float] = Field(
        default=None,
        ge=0,
        le=100,
        description="Final qualification gate percentage; None when the rubric has no litmus test",
    )
    stage_gate_readiness: Dict[str, bool] = Field(
        default_factory=dict,
        description="'<from>_to_<to>' -> whether every criterion of that stage gate is met",
    )
    warnings: List[str] = Field(
        default_factory=list,
        description="Non-fatal problems, e.g. responses citing unknown questions",
    )


class AssessmentResult(QualificationScore):
    """
    Score for one entity as served by the score cache.
    """

    entity_id: str
    organization_id: str
    last_calculated: datetime = Field(..., description="When the score was computed (UTC)")


class ErrorResponse(BaseModel):
    """
    Standard error response model.
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[dict] = Field(default=None, description="Additional error details")
    timestamp: datetime = Field(..., description="Error occurrence timestamp")
