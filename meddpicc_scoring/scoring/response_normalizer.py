"""
Response Normalizer
meddpicc_scoring/scoring/response_normalizer.py

Converts between the two response representations:

    comprehensive:  [Response(pillar_id, question_id, answer, points), ...]
    simple:         {pillar_id: "Question text: answer\n\nOther question: answer"}

Simple → comprehensive parsing rules, per "\n\n" separated segment:
    1. Match "<question text>:" as a prefix, longest question text first, so
       "Budget: approved?:" wins over "Budget:". The answer is the rest of the
       segment minus the one space the renderer puts after the colon.
    2. Otherwise take the text before the first colon and match it against
       the question texts, ignoring surrounding whitespace (hand-written text).
    3. Anything else is assigned whole to the pillar's first question and
       reported as a ParseAmbiguityWarning. Text is never dropped.

Only "\n\n" separates segments. Carriage returns and single newlines belong to
the answer, and in a run of three or more newlines the last two separate.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import structlog

from meddpicc_scoring.core.exceptions import ParseAmbiguityWarning
from meddpicc_scoring.models.configuration import Pillar, Question, RubricDefinition
from meddpicc_scoring.models.response import Response

logger = structlog.get_logger(__name__)

SEGMENT_SEPARATOR = "\n\n"
SEGMENT_SPLIT = re.compile(r"\n\n(?!\n)")

# Legacy opportunity columns → pillar ids of the default rubric
LEGACY_FIELD_MAP: Dict[str, str] = {
    "metrics": "metrics",
    "economic_buyer": "economicBuyer",
    "decision_criteria": "decisionCriteria",
    "decision_process": "decisionProcess",
    "paper_process": "paperProcess",
    "identify_pain": "identifyPain",
    "implicate_pain": "implicatePain",
    "champion": "champion",
    "competition": "competition",
}


@dataclass
class ParseReport:
    """Non-fatal findings collected while converting responses."""
    warnings: List[ParseAmbiguityWarning] = field(default_factory=list)
    unknown_references: List[str] = field(default_factory=list)

    @property
    def messages(self) -> List[str]:
        return [str(w) for w in self.warnings] + list(self.unknown_references)


class ResponseNormalizer:
    """Bidirectional converter between simple and comprehensive responses."""

    def to_simple_format(
        self,
        responses: Sequence[Response],
        configuration: RubricDefinition,
        report: Optional[ParseReport] = None,
    ) -> Dict[str, str]:
        """
        Render one text blob per pillar.

        Questions are visited in configuration order; unanswered questions are
        skipped. Every pillar gets a key, with "" when nothing was answered.
        Answers are written verbatim, surrounding whitespace included.
        Litmus test answers have no pillar blob and are left out.
        """
        answers: Dict[Tuple[str, str], str] = {}
        for response in responses:
            if configuration.is_litmus_question(response.pillar_id, response.question_id):
                continue
            pillar = configuration.get_pillar(response.pillar_id)
            if pillar is None or pillar.get_question(response.question_id) is None:
                self._report_unknown(response.pillar_id, response.question_id, report)
                continue
            answers.setdefault((response.pillar_id, response.question_id), response.answer)

        result: Dict[str, str] = {}
        for pillar in configuration.pillars:
            lines = []
            for question in pillar.questions:
                answer = answers.get((pillar.id, question.id)) or ""
                if not answer.strip():
                    continue
                lines.append(f"{question.text.strip()}: {answer}")
            result[pillar.id] = SEGMENT_SEPARATOR.join(lines)
        return result

    def to_comprehensive_format(
        self,
        pillar_id: str,
        text: str,
        configuration: RubricDefinition,
        report: Optional[ParseReport] = None,
    ) -> List[Response]:
        """Split one pillar's text blob into per-question responses, in question order."""
        pillar = configuration.get_pillar(pillar_id)
        if pillar is None:
            self._report_unknown(pillar_id, None, report)
            return []
        if not pillar.questions:
            logger.warning("pillar_has_no_questions", pillar_id=pillar_id)
            return []

        parts: Dict[str, List[str]] = {}
        for segment in SEGMENT_SPLIT.split(text or ""):
            if not segment.strip():
                continue

            question, answer = self._match_line(pillar, segment.lstrip())
            if question is None:
                line = segment.strip()
                question, answer = pillar.questions[0], line
                warning = ParseAmbiguityWarning(pillar.id, line, question.id)
                logger.warning(
                    "parse_ambiguity",
                    pillar_id=pillar.id,
                    question_id=question.id,
                    line=line[:80],
                )
                if report is not None:
                    report.warnings.append(warning)

            if not answer.strip():
                continue  # "Question:" with nothing after it
            parts.setdefault(question.id, []).append(answer)

        return [
            Response(pillar_id=pillar.id, question_id=q.id, answer="\n".join(parts[q.id]))
            for q in pillar.questions
            if q.id in parts
        ]

    def from_legacy_fields(
        self,
        fields: Dict[str, Optional[str]],
        configuration: RubricDefinition,
        field_map: Optional[Dict[str, str]] = None,
        report: Optional[ParseReport] = None,
    ) -> List[Response]:
        """Parse legacy one-column-per-pillar storage into comprehensive responses."""
        field_map = field_map or LEGACY_FIELD_MAP
        responses: List[Response] = []
        for column, pillar_id in field_map.items():
            blob = fields.get(column)
            if not blob:
                continue
            responses.extend(self.to_comprehensive_format(pillar_id, blob, configuration, report))
        return responses

    def to_legacy_fields(
        self,
        responses: Sequence[Response],
        configuration: RubricDefinition,
        field_map: Optional[Dict[str, str]] = None,
    ) -> Dict[str, str]:
        """Inverse of from_legacy_fields for pillars present in the configuration."""
        field_map = field_map or LEGACY_FIELD_MAP
        simple = self.to_simple_format(responses, configuration)
        return {
            column: simple[pillar_id]
            for column, pillar_id in field_map.items()
            if pillar_id in simple
        }

    @staticmethod
    def _match_line(pillar: Pillar, line: str) -> Tuple[Optional[Question], str]:
        # Longest first so "Budget: approved?" beats "Budget"
        candidates = sorted(pillar.questions, key=lambda q: len(q.text.strip()), reverse=True)
        for question in candidates:
            label = question.text.strip() + ":"
            if line.startswith(label):
                answer = line[len(label):]
                return question, answer[1:] if answer.startswith(" ") else answer

        colon = line.find(":")
        if colon > 0:
            label = line[:colon].strip()
            for question in pillar.questions:
                if question.text.strip() == label:
                    return question, line[colon + 1:].strip()

        return None, line

    @staticmethod
    def _report_unknown(pillar_id: str, question_id: Optional[str], report: Optional[ParseReport]) -> None:
        logger.warning("unknown_question_reference", pillar_id=pillar_id, question_id=question_id)
        if report is not None:
            target = f"{pillar_id}.{question_id}" if question_id else pillar_id
            report.unknown_references.append(f"Unknown question reference {target}")
