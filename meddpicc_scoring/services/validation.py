"""
Configuration Validation
meddpicc_scoring/services/validation.py

Checks a rubric before it is persisted. Errors block the save; warnings are
returned to the caller alongside the new version.
"""

from dataclasses import dataclass, field
from typing import List, Set

import structlog

from meddpicc_scoring.models.configuration import Question, RubricDefinition
from meddpicc_scoring.models.enumerations import QuestionType, ValidationPolicy

logger = structlog.get_logger(__name__)

OPTION_TYPES = (QuestionType.SCALE, QuestionType.MULTIPLE_CHOICE)


@dataclass
class ValidationReport:
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    total_weight: float = 0.0

    @property
    def is_valid(self) -> bool:
        return not self.errors


class ConfigurationValidator:
    """Validate rubric structure, weights and thresholds."""

    def __init__(
        self,
        policy: ValidationPolicy = ValidationPolicy.DRAFT,
        weight_total: float = 100.0,
        tolerance: float = 0.1,
    ):
        self.policy = policy
        self.weight_total = weight_total
        self.tolerance = tolerance

    def validate(self, definition: RubricDefinition) -> ValidationReport:
        report = ValidationReport(total_weight=definition.total_weight)

        question_ids = self._check_pillars(definition, report)
        self._check_litmus_test(definition, question_ids, report)
        self._check_stage_gates(definition, report)
        self._check_thresholds(definition, report)
        self._check_weight_total(definition, report)

        if report.errors:
            logger.info("configuration_rejected", errors=len(report.errors), warnings=len(report.warnings))
        return report

    def _check_pillars(self, definition: RubricDefinition, report: ValidationReport) -> Set[str]:
        question_ids: Set[str] = set()
        if not definition.pillars:
            report.errors.append("At least one pillar is required")
            return question_ids

        pillar_ids = set()
        for index, pillar in enumerate(definition.pillars):
            label = pillar.id or f"pillar[{index}]"
            if not pillar.id.strip():
                report.errors.append(f"Pillar at position {index} has a blank id")
            elif pillar.id in pillar_ids:
                report.errors.append(f"Duplicate pillar id: {pillar.id}")
            pillar_ids.add(pillar.id)

            if not pillar.name.strip():
                report.errors.append(f"Pillar {label} has a blank name")
            if pillar.weight < 0 or pillar.weight > 100:
                report.errors.append(f"Pillar {label} weight must be between 0 and 100")
            if not pillar.questions:
                report.warnings.append(f"Pillar {label} has no questions")

            self._check_questions(label, pillar.questions, question_ids, report)
        return question_ids

    def _check_questions(
        self,
        label: str,
        questions: List[Question],
        question_ids: Set[str],
        report: ValidationReport,
    ) -> None:
        # Question text is the simple-format label, so it must be unique per pillar
        texts = set()
        for q_index, question in enumerate(questions):
            if not question.id.strip():
                report.errors.append(f"Question at position {q_index} in pillar {label} has a blank id")
            elif question.id in question_ids:
                report.errors.append(f"Duplicate question id: {question.id}")
            question_ids.add(question.id)

            text = question.text.strip()
            if not text:
                report.errors.append(f"Question {label}.{question.id} has blank text")
            elif text in texts:
                report.errors.append(f"Duplicate question text in pillar {label}: {text}")
            texts.add(text)

            if question.type in OPTION_TYPES and not question.answers:
                report.errors.append(
                    f"Question {label}.{question.id} of type {question.type.value} requires answer options"
                )

    def _check_litmus_test(
        self,
        definition: RubricDefinition,
        question_ids: Set[str],
        report: ValidationReport,
    ) -> None:
        litmus = definition.litmus_test
        if litmus is None:
            return
        if not litmus.id.strip():
            report.errors.append("Litmus test has a blank id")
        elif definition.get_pillar(litmus.id) is not None:
            report.errors.append(f"Litmus test id {litmus.id} collides with a pillar id")
        if not litmus.questions:
            report.warnings.append("Litmus test has no questions")
        self._check_questions(litmus.id, litmus.questions, question_ids, report)

    def _check_stage_gates(self, definition: RubricDefinition, report: ValidationReport) -> None:
        keys = set()
        for index, gate in enumerate(definition.stage_gates):
            if not gate.from_stage.strip() or not gate.to_stage.strip():
                report.errors.append(f"Stage gate at position {index} has a blank stage name")
                continue
            if gate.key in keys:
                report.errors.append(f"Duplicate stage gate: {gate.key}")
            keys.add(gate.key)

            if not gate.criteria:
                report.warnings.append(f"Stage gate {gate.key} has no criteria")
            for criterion in gate.criteria:
                if definition.get_pillar(criterion.pillar_id) is None:
                    report.errors.append(
                        f"Stage gate {gate.key} criterion '{criterion.description}' "
                        f"references unknown pillar {criterion.pillar_id}"
                    )

    def _check_thresholds(self, definition: RubricDefinition, report: ValidationReport) -> None:
        thresholds = definition.thresholds
        for name in ("low", "medium", "high"):
            value = getattr(thresholds, name)
            if value < 0 or value > 100:
                report.errors.append(f"Threshold {name} must be between 0 and 100")
        if not (thresholds.low > thresholds.medium > thresholds.high):
            report.errors.append(
                "Thresholds must be strictly decreasing: "
                f"low ({thresholds.low}) > medium ({thresholds.medium}) > high ({thresholds.high})"
            )

    def _check_weight_total(self, definition: RubricDefinition, report: ValidationReport) -> None:
        if not definition.pillars:
            return
        if abs(report.total_weight - self.weight_total) <= self.tolerance:
            return
        message = f"Pillar weights sum to {report.total_weight:g}, expected {self.weight_total:g}"
        if self.policy == ValidationPolicy.STRICT:
            report.errors.append(message)
        else:
            report.warnings.append(message)
