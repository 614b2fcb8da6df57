"""
Configuration Audit Trail
meddpicc_scoring/services/audit.py

Builds ConfigHistoryEntry records. Every entry carries full before/after
snapshots plus a structured diff, so any past configuration can be rebuilt
from history alone.
"""

from typing import Optional
from uuid import UUID

from meddpicc_scoring.models.configuration import RubricDefinition
from meddpicc_scoring.models.enumerations import ChangeType
from meddpicc_scoring.models.history import ConfigDiff, ConfigHistoryEntry, ValueChange


def diff_definitions(before: Optional[RubricDefinition], after: RubricDefinition) -> ConfigDiff:
    """Compute what changed between two rubric snapshots."""
    diff = ConfigDiff()

    old_pillars = {p.id: p for p in before.pillars} if before else {}
    new_pillars = {p.id: p for p in after.pillars}

    diff.pillars_added = [pid for pid in new_pillars if pid not in old_pillars]
    diff.pillars_removed = [pid for pid in old_pillars if pid not in new_pillars]

    shared = [pid for pid in new_pillars if pid in old_pillars]
    old_order = [pid for pid in old_pillars if pid in new_pillars]
    diff.pillars_reordered = shared != old_order

    for pid in shared:
        old, new = old_pillars[pid], new_pillars[pid]
        if old.name != new.name:
            diff.pillars_renamed.append(pid)
        if old.weight != new.weight:
            diff.weights_changed[pid] = ValueChange(before=old.weight, after=new.weight)

        old_questions = {q.id: q for q in old.questions}
        new_questions = {q.id: q for q in new.questions}
        for qid, question in new_questions.items():
            ref = f"{pid}.{qid}"
            if qid not in old_questions:
                diff.questions_added.append(ref)
            elif old_questions[qid] != question:
                diff.questions_changed.append(ref)
        diff.questions_removed.extend(
            f"{pid}.{qid}" for qid in old_questions if qid not in new_questions
        )

    for pid in diff.pillars_added:
        diff.questions_added.extend(f"{pid}.{q.id}" for q in new_pillars[pid].questions)
        diff.weights_changed[pid] = ValueChange(before=None, after=new_pillars[pid].weight)
    for pid in diff.pillars_removed:
        diff.questions_removed.extend(f"{pid}.{q.id}" for q in old_pillars[pid].questions)
        diff.weights_changed[pid] = ValueChange(before=old_pillars[pid].weight, after=None)

    old_thresholds = before.thresholds.model_dump() if before else {}
    for name, value in after.thresholds.model_dump().items():
        if old_thresholds.get(name) != value:
            diff.thresholds_changed[name] = ValueChange(before=old_thresholds.get(name), after=value)

    if before is not None:
        diff.text_scoring_changed = before.text_scoring != after.text_scoring
        diff.litmus_test_changed = before.litmus_test != after.litmus_test
        diff.stage_gates_changed = before.stage_gates != after.stage_gates

    return diff


def build_history_entry(
    *,
    configuration_id: UUID,
    organization_id: str,
    change_type: ChangeType,
    previous_version: Optional[int],
    new_version: int,
    before: Optional[RubricDefinition],
    after: RubricDefinition,
    actor_id: Optional[str],
    reason: Optional[str] = None,
    restored_from_version: Optional[int] = None,
) -> ConfigHistoryEntry:
    return ConfigHistoryEntry(
        configuration_id=configuration_id,
        organization_id=organization_id,
        change_type=change_type,
        previous_version=previous_version,
        new_version=new_version,
        diff=diff_definitions(before, after),
        before=before,
        after=after,
        actor_id=actor_id,
        reason=reason,
        restored_from_version=restored_from_version,
    )
