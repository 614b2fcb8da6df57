from pydantic import BaseModel, Field
from uuid import UUID, uuid4
from datetime import datetime, timezone
from typing import Dict, List, Optional

from meddpicc_scoring.models.configuration import RubricDefinition
from meddpicc_scoring.models.enumerations import ChangeType


class ValueChange(BaseModel):
    before: Optional[float] = None
    after: Optional[float] = None


class ConfigDiff(BaseModel):
    """
    Structured summary of what changed between two rubric snapshots.
    Question references use the form "<pillar_id>.<question_id>".
    """

    pillars_added: List[str] = Field(default_factory=list)
    pillars_removed: List[str] = Field(default_factory=list)
    pillars_renamed: List[str] = Field(default_factory=list)
    pillars_reordered: bool = False
    weights_changed: Dict[str, ValueChange] = Field(default_factory=dict)
    questions_added: List[str] = Field(default_factory=list)
    questions_removed: List[str] = Field(default_factory=list)
    questions_changed: List[str] = Field(default_factory=list)
    thresholds_changed: Dict[str, ValueChange] = Field(default_factory=dict)
    text_scoring_changed: bool = False
    litmus_test_changed: bool = False
    stage_gates_changed: bool = False

    @property
    def has_changes(self) -> bool:
        return any([
            self.pillars_added, self.pillars_removed, self.pillars_renamed,
            self.pillars_reordered, self.weights_changed, self.questions_added,
            self.questions_removed, self.questions_changed,
            self.thresholds_changed, self.text_scoring_changed,
            self.litmus_test_changed, self.stage_gates_changed,
        ])


class ConfigHistoryEntry(BaseModel):
    """
    Append-only audit record of one configuration mutation.
    """

    id: UUID = Field(default_factory=uuid4)
    configuration_id: UUID = Field(..., description="Configuration version the change produced or targeted")
    organization_id: str
    change_type: ChangeType
    previous_version: Optional[int] = Field(default=None, description="Latest or active version before the change")
    new_version: int
    diff: ConfigDiff = Field(default_factory=ConfigDiff)
    before: Optional[RubricDefinition] = Field(default=None, description="Full snapshot before the change")
    after: RubricDefinition = Field(..., description="Full snapshot after the change")
    actor_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    reason: Optional[str] = None
    restored_from_version: Optional[int] = Field(
        default=None,
        description="Set for rolled_back entries: the version whose snapshot was copied",
    )
