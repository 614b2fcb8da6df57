# meddpicc_scoring/scoring/qualification_scorer.py
"""
Qualification Scorer
--------------------
Computes the weighted MEDDPICC total and risk level for one set of responses
against one configuration version.

Formula:
    pillar_raw      = min(Σ question points, pillar_max)
    pillar_max      = Σ question max_points
    pillar_weighted = (pillar_raw / pillar_max) × pillar_weight   (0 when pillar_max = 0)
    total           = Σ pillar_weighted                           (0-100 when weights sum to 100)

Risk classification against thresholds {low > medium > high}:
    total ≥ low            → low risk
    medium ≤ total < low   → medium risk
    high ≤ total < medium  → high risk
    total < high           → critical/unqualified

The litmus test (final qualification gate) is scored on its own as
min(Σ points, max) / max × 100 and never enters the total. A stage gate is
ready when every criterion's pillar percentage reaches its minimum.

The scorer is pure: no I/O, no clock, no shared state.
"""
import structlog
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from meddpicc_scoring.core.exceptions import UnknownQuestionReferenceError
from meddpicc_scoring.models.assessment import PillarBreakdown, QualificationScore
from meddpicc_scoring.models.configuration import Pillar, RubricDefinition, Thresholds
from meddpicc_scoring.models.enumerations import RiskLevel
from meddpicc_scoring.models.response import Response
from meddpicc_scoring.scoring.text_scorer import resolve_points
from meddpicc_scoring.scoring.utils import round_score, safe_ratio, to_decimal

logger = structlog.get_logger(__name__)

# Pillars below this completion percentage get a next action
NEXT_ACTION_THRESHOLD = Decimal("50")


def classify_risk(total_score: Decimal, thresholds: Thresholds) -> RiskLevel:
    """Map a total score onto the configured risk bands."""
    if total_score >= to_decimal(thresholds.low):
        return RiskLevel.LOW
    if total_score >= to_decimal(thresholds.medium):
        return RiskLevel.MEDIUM
    if total_score >= to_decimal(thresholds.high):
        return RiskLevel.HIGH
    return RiskLevel.CRITICAL


class QualificationScorer:
    """Calculate weighted qualification scores from rubric responses."""

    def compute_score(
        self,
        responses: Sequence[Response],
        configuration: RubricDefinition,
        config_version: int = None,
    ) -> QualificationScore:
        """
        Args:
            responses: Comprehensive-format responses. References to pillars or
                       questions absent from the configuration are ignored and
                       reported in warnings.
            configuration: The rubric version to score against.
            config_version: Version to record; defaults to configuration.version.

        Returns:
            QualificationScore with total, risk level and per-pillar breakdown.
        """
        version = config_version if config_version is not None else getattr(configuration, "version")
        answers, warnings = self._index_responses(responses, configuration, version)

        breakdown: List[PillarBreakdown] = []
        next_actions: List[str] = []
        total = Decimal("0")

        for pillar in configuration.pillars:
            detail, weighted = self._score_pillar(pillar, answers, configuration)
            breakdown.append(detail)
            total += weighted
            if Decimal(str(detail.percentage)) < NEXT_ACTION_THRESHOLD:
                next_actions.append(
                    f"Complete {pillar.name} assessment - currently {round(detail.percentage)}% complete"
                )

        total = round_score(total)
        risk_level = classify_risk(total, configuration.thresholds)
        litmus_score = self._score_litmus(answers, configuration)
        readiness = self._stage_gate_readiness(breakdown, configuration)

        logger.info(
            "score_computed",
            config_version=version,
            total_score=float(total),
            risk_level=risk_level.value,
            litmus_test_score=litmus_score,
            gates_ready=sum(readiness.values()),
            pillar_count=len(breakdown),
            unknown_references=len(warnings),
        )

        return QualificationScore(
            total_score=float(total),
            risk_level=risk_level,
            per_pillar_breakdown=breakdown,
            config_version_used=version,
            next_actions=next_actions,
            litmus_test_score=litmus_score,
            stage_gate_readiness=readiness,
            warnings=warnings,
        )

    def _score_litmus(
        self,
        answers: Dict[Tuple[str, str], Response],
        configuration: RubricDefinition,
    ) -> Optional[float]:
        litmus = configuration.litmus_test
        if litmus is None:
            return None

        raw = Decimal("0")
        for question in litmus.questions:
            response = answers.get((litmus.id, question.id))
            if response is None or not response.is_answered:
                continue
            raw += resolve_points(question, response, configuration.text_scoring)

        max_points = to_decimal(litmus.max_points)
        ratio = safe_ratio(min(raw, max_points), max_points)
        return float(round_score(ratio * Decimal("100")))

    def _stage_gate_readiness(
        self,
        breakdown: List[PillarBreakdown],
        configuration: RubricDefinition,
    ) -> Dict[str, bool]:
        percentages = {detail.pillar_id: to_decimal(detail.percentage) for detail in breakdown}
        readiness: Dict[str, bool] = {}
        for gate in configuration.stage_gates:
            readiness[gate.key] = all(
                criterion.pillar_id in percentages
                and percentages[criterion.pillar_id] >= to_decimal(criterion.min_percentage)
                for criterion in gate.criteria
            )
        return readiness

    def _score_pillar(
        self,
        pillar: Pillar,
        answers: Dict[Tuple[str, str], Response],
        configuration: RubricDefinition,
    ) -> Tuple[PillarBreakdown, Decimal]:
        raw = Decimal("0")
        answered = 0
        for question in pillar.questions:
            response = answers.get((pillar.id, question.id))
            if response is None or not response.is_answered:
                continue  # Unanswered questions contribute zero
            answered += 1
            raw += resolve_points(question, response, configuration.text_scoring)

        max_points = to_decimal(pillar.max_points)
        raw = min(raw, max_points)
        ratio = safe_ratio(raw, max_points)
        weighted = ratio * to_decimal(pillar.weight)

        detail = PillarBreakdown(
            pillar_id=pillar.id,
            name=pillar.name,
            weight=pillar.weight,
            raw_points=float(raw),
            max_points=float(max_points),
            percentage=float(round_score(ratio * Decimal("100"))),
            weighted_score=float(round_score(weighted)),
            answered_questions=answered,
            total_questions=len(pillar.questions),
        )
        return detail, weighted

    def _index_responses(
        self,
        responses: Sequence[Response],
        configuration: RubricDefinition,
        version: int,
    ) -> Tuple[Dict[Tuple[str, str], Response], List[str]]:
        """Index responses by (pillar, question); first response per question wins."""
        index: Dict[Tuple[str, str], Response] = {}
        warnings: List[str] = []
        reported = set()

        for response in responses:
            if configuration.is_litmus_question(response.pillar_id, response.question_id):
                index.setdefault((response.pillar_id, response.question_id), response)
                continue
            pillar = configuration.get_pillar(response.pillar_id)
            if pillar is None or pillar.get_question(response.question_id) is None:
                ref = (response.pillar_id, response.question_id)
                if ref not in reported:
                    reported.add(ref)
                    error = UnknownQuestionReferenceError(
                        response.pillar_id,
                        response.question_id,
                        version,
                    )
                    logger.warning(
                        "unknown_question_reference",
                        pillar_id=response.pillar_id,
                        question_id=response.question_id,
                        config_version=version,
                    )
                    warnings.append(error.message)
                continue
            index.setdefault((response.pillar_id, response.question_id), response)

        return index, warnings


_default_scorer = QualificationScorer()


def compute_score(responses: Sequence[Response], configuration: RubricDefinition) -> QualificationScore:
    """Module-level shortcut for QualificationScorer().compute_score()."""
    return _default_scorer.compute_score(responses, configuration)
