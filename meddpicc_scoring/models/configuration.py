from pydantic import BaseModel, Field
from uuid import UUID, uuid4
from datetime import datetime, timezone
from typing import Optional, List

from meddpicc_scoring.models.enumerations import ConfigurationStatus, QuestionType


DEFAULT_QUALITY_KEYWORDS = [
    "specific", "measurable", "quantified", "roi", "impact",
    "cost", "savings", "efficiency", "revenue", "profit",
    "test", "quality", "improvement", "lives", "saved",
    "clinical", "patient", "outcomes", "compliance", "regulatory",
]


class AnswerOption(BaseModel):
    """
    Predefined answer for scale / choice questions.
    """

    text: str = Field(..., description="Answer label shown to the user")
    points: float = Field(..., ge=0, description="Points awarded when this answer is chosen")


class Question(BaseModel):
    """
    A single rubric question owned by a pillar.
    """

    id: str = Field(..., description="Question identifier, unique within the configuration")
    text: str = Field(..., description="Question text; also the label used in simple format")
    type: QuestionType = Field(default=QuestionType.TEXT, description="Answer style")
    max_points: float = Field(default=10, ge=0, description="Maximum points this question can award")
    tooltip: Optional[str] = Field(default=None, description="Help text for the question")
    required: bool = Field(default=True)
    answers: List[AnswerOption] = Field(
        default_factory=list,
        description="Answer options for scale, multiple_choice and yes_no questions",
    )

    def option_points(self, answer: str) -> Optional[float]:
        """Return the points of the option whose text equals the answer, if any."""
        normalized = answer.strip()
        for option in self.answers:
            if option.text.strip() == normalized:
                return option.points
        return None


class Pillar(BaseModel):
    """
    A weighted qualification category (e.g. Economic Buyer).
    """

    id: str = Field(..., description="Pillar identifier, unique within the configuration")
    name: str = Field(..., description="Display name")
    description: Optional[str] = Field(default=None)
    weight: float = Field(..., description="Contribution to the organization's weight total")
    questions: List[Question] = Field(default_factory=list)

    @property
    def max_points(self) -> float:
        return sum(q.max_points for q in self.questions)

    def get_question(self, question_id: str) -> Optional[Question]:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None


class Thresholds(BaseModel):
    """
    Risk cutoffs. A valid set is strictly decreasing: low > medium > high.
    """

    low: float = Field(..., description="Scores at or above this are low risk")
    medium: float = Field(..., description="Scores at or above this are medium risk")
    high: float = Field(..., description="Scores at or above this are high risk; below is critical")


class TextScoringSettings(BaseModel):
    """
    Points awarded to free-text answers that arrive without explicit points.
    """

    base_points: float = 3
    min_length_points: float = 2
    good_detail_points: float = 2
    comprehensive_points: float = 2
    very_detailed_points: float = 1
    min_length: int = 3
    good_detail_length: int = 10
    comprehensive_length: int = 25
    very_detailed_length: int = 50
    max_keyword_bonus: int = 2
    quality_keywords: List[str] = Field(default_factory=lambda: list(DEFAULT_QUALITY_KEYWORDS))


class LitmusTest(BaseModel):
    """
    Final qualification gate: yes/no questions scored apart from the pillars.
    Responses address it with pillar_id equal to `id`.
    """

    id: str = Field(default="litmus", description="Pseudo pillar id used by litmus responses")
    name: str = Field(default="Final Qualification Gate")
    questions: List[Question] = Field(default_factory=list)

    @property
    def max_points(self) -> float:
        return sum(q.max_points for q in self.questions)

    def get_question(self, question_id: str) -> Optional[Question]:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None


class StageGateCriterion(BaseModel):
    """
    One readiness condition: a pillar must reach a completion percentage.
    """

    description: str = Field(..., description="e.g. 'Champion identified'")
    pillar_id: str
    min_percentage: float = Field(default=50, ge=0, le=100)


class StageGate(BaseModel):
    """
    Pipeline stage transition that is ready when every criterion holds.
    """

    from_stage: str
    to_stage: str
    criteria: List[StageGateCriterion] = Field(default_factory=list)

    @property
    def key(self) -> str:
        return f"{self.from_stage}_to_{self.to_stage}"


class RubricDefinition(BaseModel):
    """
    The versioned document: everything an organization can edit.
    """

    pillars: List[Pillar] = Field(default_factory=list)
    thresholds: Thresholds
    text_scoring: TextScoringSettings = Field(default_factory=TextScoringSettings)
    litmus_test: Optional[LitmusTest] = Field(default=None)
    stage_gates: List[StageGate] = Field(default_factory=list)

    @property
    def total_weight(self) -> float:
        return sum(p.weight for p in self.pillars)

    def get_pillar(self, pillar_id: str) -> Optional[Pillar]:
        for pillar in self.pillars:
            if pillar.id == pillar_id:
                return pillar
        return None

    def is_litmus_question(self, pillar_id: str, question_id: str) -> bool:
        return (
            self.litmus_test is not None
            and self.litmus_test.id == pillar_id
            and self.litmus_test.get_question(question_id) is not None
        )


class Configuration(RubricDefinition):
    """
    A persisted, immutable rubric version for one organization.
    Only is_active / activated_at change after persistence.
    """

    id: UUID = Field(default_factory=uuid4, description="Configuration record identifier")
    organization_id: str = Field(..., description="Owning organization")
    version: int = Field(..., ge=1, description="Monotonically increasing per organization")
    is_active: bool = Field(default=False)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    created_by: Optional[str] = Field(default=None, description="Actor who saved this version")
    activated_at: Optional[datetime] = Field(
        default=None,
        description="Last time this version became active",
    )

    @property
    def status(self) -> ConfigurationStatus:
        if self.is_active:
            return ConfigurationStatus.ACTIVE
        if self.activated_at is not None:
            return ConfigurationStatus.SUPERSEDED
        return ConfigurationStatus.DRAFT

    @classmethod
    def from_definition(cls, definition: RubricDefinition, **fields) -> "Configuration":
        document = {name: getattr(definition, name) for name in RubricDefinition.model_fields}
        return cls(**document, **fields)

    def definition(self) -> RubricDefinition:
        """Snapshot of the editable document, without record metadata."""
        return RubricDefinition(
            pillars=[p.model_copy(deep=True) for p in self.pillars],
            thresholds=self.thresholds.model_copy(),
            text_scoring=self.text_scoring.model_copy(deep=True),
            litmus_test=self.litmus_test.model_copy(deep=True) if self.litmus_test else None,
            stage_gates=[g.model_copy(deep=True) for g in self.stage_gates],
        )


class ConfigurationCreate(BaseModel):
    """
    Request body for saving a new configuration version.
    """

    pillars: List[Pillar] = Field(..., description="Ordered pillars with their questions")
    thresholds: Thresholds
    text_scoring: Optional[TextScoringSettings] = Field(default=None)
    litmus_test: Optional[LitmusTest] = Field(default=None)
    stage_gates: List[StageGate] = Field(default_factory=list)
    reason: Optional[str] = Field(default=None, max_length=1000, description="Why this change was made")


class ConfigurationResponse(BaseModel):
    """
    Configuration as returned by the API, with derived fields.
    """

    id: UUID
    organization_id: str
    version: int
    status: ConfigurationStatus
    is_active: bool
    total_weight: float
    pillars: List[Pillar]
    thresholds: Thresholds
    text_scoring: TextScoringSettings
    litmus_test: Optional[LitmusTest] = None
    stage_gates: List[StageGate] = Field(default_factory=list)
    created_at: datetime
    created_by: Optional[str] = None
    activated_at: Optional[datetime] = None

    @classmethod
    def from_configuration(cls, configuration: Configuration) -> "ConfigurationResponse":
        return cls(
            id=configuration.id,
            organization_id=configuration.organization_id,
            version=configuration.version,
            status=configuration.status,
            is_active=configuration.is_active,
            total_weight=configuration.total_weight,
            pillars=configuration.pillars,
            thresholds=configuration.thresholds,
            text_scoring=configuration.text_scoring,
            litmus_test=configuration.litmus_test,
            stage_gates=configuration.stage_gates,
            created_at=configuration.created_at,
            created_by=configuration.created_by,
            activated_at=configuration.activated_at,
        )


class SavedConfiguration(BaseModel):
    """
    Result of a successful save.
    """

    configuration_id: UUID
    version: int
    warnings: List[str] = Field(default_factory=list)


class ConfigurationImport(BaseModel):
    """
    Request body for importing an exported configuration document.
    """

    payload: dict = Field(..., description="Document produced by the export endpoint")
    reason: Optional[str] = Field(default=None, max_length=1000)
