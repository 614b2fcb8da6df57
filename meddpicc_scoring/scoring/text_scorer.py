"""
Text Answer Scorer
meddpicc_scoring/scoring/text_scorer.py

Awards points to free-text answers that arrive without explicit points.

Scoring ladder (defaults, all configurable per rubric version):
    any content           +3
    length >= 3           +2
    length >= 10          +2
    length >= 25          +2
    length >= 50          +1
    quality keywords      +1 each, at most +2
    capped at the question's max_points
"""

from decimal import Decimal

from meddpicc_scoring.models.configuration import Question, TextScoringSettings
from meddpicc_scoring.models.enumerations import QuestionType
from meddpicc_scoring.models.response import Response
from meddpicc_scoring.scoring.utils import clamp, to_decimal


def score_text_answer(answer: str, max_points: float, settings: TextScoringSettings) -> Decimal:
    """Score one free-text answer against the text-scoring ladder."""
    text = answer.strip()
    if not text:
        return Decimal("0")

    points = Decimal(str(settings.base_points))
    length = len(text)
    ladder = [
        (settings.min_length, settings.min_length_points),
        (settings.good_detail_length, settings.good_detail_points),
        (settings.comprehensive_length, settings.comprehensive_points),
        (settings.very_detailed_length, settings.very_detailed_points),
    ]
    for min_chars, bonus in ladder:
        if length >= min_chars:
            points += Decimal(str(bonus))

    lowered = text.lower()
    keyword_hits = sum(1 for keyword in settings.quality_keywords if keyword.lower() in lowered)
    points += Decimal(min(keyword_hits, settings.max_keyword_bonus))

    return clamp(points, Decimal("0"), to_decimal(max_points))


def resolve_points(question: Question, response: Response, settings: TextScoringSettings) -> Decimal:
    """
    Points a response earns for its question.

    Explicit points win; otherwise option questions look up the chosen
    option and text questions use the text ladder. Unanswered is always 0.
    """
    if not response.is_answered:
        return Decimal("0")

    max_points = to_decimal(question.max_points)

    if response.points is not None:
        return clamp(to_decimal(response.points), Decimal("0"), max_points)

    option_points = question.option_points(response.answer)
    if option_points is not None:
        return clamp(to_decimal(option_points), Decimal("0"), max_points)

    if question.type == QuestionType.TEXT:
        return score_text_answer(response.answer, question.max_points, settings)

    # Option question answered with text that matches no option
    return Decimal("0")
