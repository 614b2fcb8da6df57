from pydantic import BaseModel, Field, model_validator
from typing import Dict, List, Optional


class Response(BaseModel):
    """
    One answer to one rubric question (comprehensive format).
    """

    pillar_id: str = Field(..., description="Pillar the question belongs to")
    question_id: str = Field(..., description="Question being answered")
    answer: str = Field(default="", description="Answer text; empty means unanswered")
    points: Optional[float] = Field(
        default=None,
        description="Points awarded; resolved from the rubric when omitted",
    )

    @property
    def is_answered(self) -> bool:
        return bool(self.answer and self.answer.strip())


class ScoreRequest(BaseModel):
    """
    Request body for scoring an entity.

    Callers send either comprehensive responses or one simple-format
    text blob per pillar, not both.
    """

    entity_id: str = Field(..., min_length=1, description="Parent business entity, e.g. an opportunity")
    responses: List[Response] = Field(default_factory=list)
    simple_responses: Optional[Dict[str, str]] = Field(
        default=None,
        description="Mapping of pillar id to simple-format text",
    )

    @model_validator(mode="after")
    def validate_single_representation(self):
        """Ensure only one response representation is supplied."""
        if self.responses and self.simple_responses:
            raise ValueError("Send either responses or simple_responses, not both")
        return self


class SimpleFormatRequest(BaseModel):
    """
    Comprehensive responses to render as one text blob per pillar.
    """

    responses: List[Response] = Field(default_factory=list)


class ComprehensiveFormatRequest(BaseModel):
    """
    A simple-format text blob to split back into per-question answers.
    """

    pillar_id: str = Field(..., min_length=1)
    text: str = Field(default="")


class ComprehensiveFormatResponse(BaseModel):
    pillar_id: str
    responses: List[Response]
    warnings: List[str] = Field(default_factory=list)
