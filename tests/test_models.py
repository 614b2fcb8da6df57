# tests/test_models.py

"""
Model Validation Tests - Pydantic models and the configuration validator
"""

import pytest
from datetime import datetime, timezone
from pydantic import ValidationError

from meddpicc_scoring.models.configuration import (
    AnswerOption,
    Configuration,
    ConfigurationResponse,
    Pillar,
    Question,
    RubricDefinition,
    StageGate,
    StageGateCriterion,
    Thresholds,
)
from meddpicc_scoring.models.enumerations import ConfigurationStatus, QuestionType, ValidationPolicy
from meddpicc_scoring.models.response import Response, ScoreRequest
from meddpicc_scoring.scoring.defaults import DEFAULT_THRESHOLDS, default_rubric
from meddpicc_scoring.services.validation import ConfigurationValidator


# QUESTION / PILLAR


class TestQuestion:

    def test_defaults(self):
        question = Question(id="q", text="Q?")
        assert question.type == QuestionType.TEXT
        assert question.max_points == 10
        assert question.answers == []

    def test_option_points_ignores_surrounding_whitespace(self):
        question = Question(
            id="q",
            text="Q?",
            type="scale",
            answers=[AnswerOption(text="High", points=9), AnswerOption(text="Low", points=2)],
        )
        assert question.option_points("  High ") == 9
        assert question.option_points("Medium") is None

    def test_negative_max_points_rejected(self):
        with pytest.raises(ValidationError):
            Question(id="q", text="Q?", max_points=-1)

    def test_pillar_max_points(self):
        pillar = Pillar(
            id="p",
            name="P",
            weight=10,
            questions=[Question(id="a", text="A?", max_points=5), Question(id="b", text="B?")],
        )
        assert pillar.max_points == 15
        assert pillar.get_question("b").text == "B?"
        assert pillar.get_question("c") is None


# CONFIGURATION


class TestConfiguration:

    def make(self, **kwargs):
        rubric = default_rubric()
        kwargs.setdefault("version", 1)
        return Configuration(organization_id="org", pillars=rubric.pillars,
                             thresholds=rubric.thresholds, **kwargs)

    def test_status_transitions(self):
        assert self.make().status == ConfigurationStatus.DRAFT
        assert self.make(is_active=True).status == ConfigurationStatus.ACTIVE
        superseded = self.make(activated_at=datetime(2026, 1, 1, tzinfo=timezone.utc))
        assert superseded.status == ConfigurationStatus.SUPERSEDED

    def test_version_must_be_positive(self):
        with pytest.raises(ValidationError):
            self.make(version=0)

    def test_definition_is_a_detached_copy(self):
        configuration = self.make()
        definition = configuration.definition()
        definition.pillars[0].weight = 99
        assert configuration.pillars[0].weight != 99

    def test_from_definition_keeps_litmus_and_gates(self):
        configuration = Configuration.from_definition(default_rubric(), organization_id="org", version=3)
        assert configuration.version == 3
        assert configuration.litmus_test.id == "litmus"
        assert len(configuration.definition().stage_gates) == 3

    def test_response_model_carries_derived_fields(self):
        response = ConfigurationResponse.from_configuration(self.make(is_active=True))
        assert response.status == ConfigurationStatus.ACTIVE
        assert response.total_weight == 100


# RESPONSES


class TestResponses:

    @pytest.mark.parametrize("answer,expected", [("yes", True), ("  ", False), ("", False)])
    def test_is_answered(self, answer, expected):
        assert Response(pillar_id="p", question_id="q", answer=answer).is_answered is expected

    def test_score_request_rejects_both_representations(self):
        with pytest.raises(ValidationError):
            ScoreRequest(
                entity_id="opp-1",
                responses=[Response(pillar_id="p", question_id="q", answer="a")],
                simple_responses={"p": "a"},
            )

    def test_score_request_requires_entity(self):
        with pytest.raises(ValidationError):
            ScoreRequest(entity_id="")


# DEFAULT RUBRIC


class TestDefaultRubric:

    def test_weights_sum_to_100(self):
        assert default_rubric().total_weight == 100

    def test_passes_strict_validation(self):
        report = ConfigurationValidator(policy=ValidationPolicy.STRICT).validate(default_rubric())
        assert report.is_valid
        assert report.warnings == []

    def test_thresholds(self):
        thresholds = default_rubric().thresholds
        assert (thresholds.low, thresholds.medium, thresholds.high) == (
            DEFAULT_THRESHOLDS["low"], DEFAULT_THRESHOLDS["medium"], DEFAULT_THRESHOLDS["high"]
        )

    def test_litmus_test_and_stage_gates(self):
        rubric = default_rubric()
        assert rubric.litmus_test.name == "Final Qualification Gate"
        assert [q.id for q in rubric.litmus_test.questions] == [
            "budget_confirmed", "decision_timeline", "champion_confirmed",
        ]
        assert rubric.litmus_test.max_points == 30
        assert [g.key for g in rubric.stage_gates] == [
            "Prospecting_to_Engaging", "Engaging_to_Advancing", "Advancing_to_Key Decision",
        ]
        assert rubric.is_litmus_question("litmus", "budget_confirmed")
        assert not rubric.is_litmus_question("metrics", "budget_confirmed")

    def test_option_questions_have_options(self):
        for pillar in default_rubric().pillars:
            for question in pillar.questions:
                if question.type in (QuestionType.SCALE, QuestionType.MULTIPLE_CHOICE):
                    assert question.answers, f"{pillar.id}.{question.id}"


# VALIDATOR


class TestConfigurationValidator:

    def test_tolerance_absorbs_rounding(self):
        rubric = RubricDefinition(
            pillars=[
                Pillar(id="a", name="A", weight=33.33, questions=[Question(id="a1", text="A?")]),
                Pillar(id="b", name="B", weight=33.33, questions=[Question(id="b1", text="B?")]),
                Pillar(id="c", name="C", weight=33.34, questions=[Question(id="c1", text="C?")]),
            ],
            thresholds=Thresholds(low=80, medium=60, high=40),
        )
        report = ConfigurationValidator(policy=ValidationPolicy.STRICT).validate(rubric)
        assert report.is_valid

    def test_custom_weight_total(self):
        rubric = RubricDefinition(
            pillars=[Pillar(id="a", name="A", weight=100, questions=[Question(id="a1", text="A?")])],
            thresholds=Thresholds(low=80, medium=60, high=40),
        )
        report = ConfigurationValidator(policy=ValidationPolicy.STRICT, weight_total=120).validate(rubric)
        assert report.errors == ["Pillar weights sum to 100, expected 120"]

    def test_blank_names_and_weights_out_of_range(self):
        rubric = RubricDefinition(
            pillars=[Pillar(id="a", name=" ", weight=150, questions=[Question(id="a1", text=" ")])],
            thresholds=Thresholds(low=80, medium=60, high=40),
        )
        errors = ConfigurationValidator().validate(rubric).errors
        assert "Pillar a has a blank name" in errors
        assert "Pillar a weight must be between 0 and 100" in errors
        assert "Question a.a1 has blank text" in errors

    def test_empty_pillar_is_warning(self):
        rubric = RubricDefinition(
            pillars=[
                Pillar(id="a", name="A", weight=100, questions=[Question(id="a1", text="A?")]),
                Pillar(id="b", name="B", weight=0),
            ],
            thresholds=Thresholds(low=80, medium=60, high=40),
        )
        report = ConfigurationValidator().validate(rubric)
        assert report.is_valid
        assert report.warnings == ["Pillar b has no questions"]

    def test_duplicate_question_text_in_pillar_rejected(self):
        rubric = RubricDefinition(
            pillars=[
                Pillar(
                    id="a",
                    name="A",
                    weight=100,
                    questions=[Question(id="a1", text="Budget?"), Question(id="a2", text=" Budget? ")],
                ),
            ],
            thresholds=Thresholds(low=80, medium=60, high=40),
        )
        report = ConfigurationValidator().validate(rubric)
        assert report.errors == ["Duplicate question text in pillar a: Budget?"]

    def test_same_question_text_in_different_pillars_allowed(self):
        rubric = RubricDefinition(
            pillars=[
                Pillar(id="a", name="A", weight=50, questions=[Question(id="a1", text="Notes?")]),
                Pillar(id="b", name="B", weight=50, questions=[Question(id="b1", text="Notes?")]),
            ],
            thresholds=Thresholds(low=80, medium=60, high=40),
        )
        assert ConfigurationValidator().validate(rubric).is_valid

    def test_litmus_test_checks(self):
        rubric = default_rubric()
        rubric.litmus_test.id = "metrics"
        rubric.litmus_test.questions.append(Question(id="current_cost", text="Anything else?"))
        errors = ConfigurationValidator().validate(rubric).errors

        assert "Litmus test id metrics collides with a pillar id" in errors
        assert "Duplicate question id: current_cost" in errors

    def test_stage_gate_checks(self):
        rubric = default_rubric()
        rubric.stage_gates.append(
            StageGate(
                from_stage="Prospecting",
                to_stage="Engaging",
                criteria=[StageGateCriterion(description="Legal review", pillar_id="legal")],
            )
        )
        rubric.stage_gates.append(StageGate(from_stage="Won", to_stage="Renewal"))
        report = ConfigurationValidator().validate(rubric)

        assert "Duplicate stage gate: Prospecting_to_Engaging" in report.errors
        assert (
            "Stage gate Prospecting_to_Engaging criterion 'Legal review' references unknown pillar legal"
            in report.errors
        )
        assert report.warnings == ["Stage gate Won_to_Renewal has no criteria"]
