"""
Default MEDD(I)PICC Rubric
meddpicc_scoring/scoring/defaults.py

The rubric new organizations start from. Pillar weights sum to 100;
every question is worth up to 10 points. The litmus test and stage gates
follow the pillars.
"""

from typing import Any, Dict, List

from meddpicc_scoring.models.configuration import LitmusTest, Pillar, RubricDefinition, StageGate, Thresholds


URGENCY_OPTIONS = [
    {"text": "Critical (Must solve immediately)", "points": 10},
    {"text": "High (Solve within 3 months)", "points": 8},
    {"text": "Medium (Solve within 6 months)", "points": 6},
    {"text": "Low (Solve within 12 months)", "points": 4},
    {"text": "Not urgent", "points": 2},
]

MEETING_OPTIONS = [
    {"text": "Yes - Multiple meetings", "points": 10},
    {"text": "Yes - One meeting", "points": 7},
    {"text": "No - Scheduled", "points": 4},
    {"text": "No - Not identified", "points": 0},
]

INFLUENCE_OPTIONS = [
    {"text": "Very High (C-Level)", "points": 10},
    {"text": "High (VP/Director)", "points": 8},
    {"text": "Medium (Manager)", "points": 6},
    {"text": "Low (Individual Contributor)", "points": 4},
    {"text": "Unknown", "points": 2},
]

COMMITMENT_OPTIONS = [
    {"text": "Fully committed", "points": 10},
    {"text": "Strongly supportive", "points": 8},
    {"text": "Moderately supportive", "points": 6},
    {"text": "Neutral", "points": 4},
    {"text": "Not committed", "points": 2},
]

WIN_PROBABILITY_OPTIONS = [
    {"text": "Very High (90%+)", "points": 10},
    {"text": "High (70-89%)", "points": 8},
    {"text": "Medium (50-69%)", "points": 6},
    {"text": "Low (30-49%)", "points": 4},
    {"text": "Very Low (<30%)", "points": 2},
]


def _q(qid: str, text: str, tooltip: str, qtype: str = "text", answers=None) -> Dict[str, Any]:
    return {
        "id": qid,
        "text": text,
        "tooltip": tooltip,
        "type": qtype,
        "max_points": 10,
        "answers": answers or [],
    }


DEFAULT_PILLARS: List[Dict[str, Any]] = [
    {
        "id": "metrics",
        "name": "Metrics",
        "description": "Quantify the business impact and ROI",
        "weight": 12,
        "questions": [
            _q("current_cost", "What is the current cost of the problem?",
               "Quantify the financial impact of the current situation"),
            _q("expected_roi", "What is the expected ROI from solving this problem?",
               "Calculate the return on investment"),
            _q("success_metrics", "How will success be measured?",
               "Define specific KPIs and success criteria"),
            _q("urgency_level", "How urgent is this problem?",
               "Rate the urgency of solving this problem", "scale", URGENCY_OPTIONS),
        ],
    },
    {
        "id": "economicBuyer",
        "name": "Economic Buyer",
        "description": "Identify the person who can approve the budget",
        "weight": 17,
        "questions": [
            _q("budget_authority", "Who has the authority to approve this purchase?",
               "Identify the person with budget approval power"),
            _q("influence_level", "What is their role and influence level?",
               "Assess their position and decision-making power"),
            _q("meeting_status", "Have we met with the economic buyer?",
               "Confirm direct engagement with budget holder", "yes_no", MEETING_OPTIONS),
            _q("budget_range", "What is their budget authority?",
               "Understand their spending limits"),
        ],
    },
    {
        "id": "decisionCriteria",
        "name": "Decision Criteria",
        "description": "Understand how they will evaluate solutions",
        "weight": 8,
        "questions": [
            _q("key_criteria", "What are their key decision criteria?",
               "List the main factors they will use to evaluate solutions"),
            _q("criteria_importance", "How important is each criterion?",
               "Rank the criteria by importance"),
            _q("must_haves", "What are their must-haves vs nice-to-haves?",
               "Distinguish between essential and optional features"),
        ],
    },
    {
        "id": "decisionProcess",
        "name": "Decision Process",
        "description": "Map the approval workflow and timeline",
        "weight": 12,
        "questions": [
            _q("process_steps", "What is their decision-making process?",
               "Outline the steps in their decision process"),
            _q("stakeholders", "Who else needs to be involved?",
               "Identify all decision influencers"),
            _q("timeline", "What is the timeline for decision?",
               "Establish decision timeline and milestones"),
        ],
    },
    {
        "id": "paperProcess",
        "name": "Paper Process",
        "description": "Document requirements and procurement process",
        "weight": 4,
        "questions": [
            _q("documentation", "What documentation is required?",
               "List all required documents and forms"),
            _q("procurement", "What is their procurement process?",
               "Understand their purchasing procedures"),
            _q("compliance", "Are there any compliance requirements?",
               "Identify regulatory or policy requirements"),
        ],
    },
    {
        "id": "identifyPain",
        "name": "Identify Pain",
        "description": "Understand their pain points and challenges",
        "weight": 17,
        "questions": [
            _q("biggest_challenge", "What is their biggest challenge?",
               "Identify the primary pain point"),
            _q("consequences", "What happens if they don't solve this?",
               "Understand the impact of inaction"),
            _q("previous_attempts", "What have they tried before?",
               "Learn from their past solutions"),
        ],
    },
    {
        "id": "implicatePain",
        "name": "Implicate Pain",
        "description": "Help them understand the full impact of their pain",
        "weight": 17,
        "questions": [
            _q("pain_amplification", "How can we help them understand the full impact?",
               "Strategies to amplify pain recognition"),
            _q("urgency_creation", "What creates urgency for them?",
               "Identify what motivates immediate action"),
            _q("stakeholder_impact", "Who else is affected by this pain?",
               "Map pain impact across stakeholders"),
        ],
    },
    {
        "id": "champion",
        "name": "Champion",
        "description": "Find internal advocate who will support you",
        "weight": 9,
        "questions": [
            _q("champion_identity", "Who is our internal champion?",
               "Identify the person who will advocate for us"),
            _q("champion_influence", "What is their influence level?",
               "Assess their power and influence in the organization", "scale", INFLUENCE_OPTIONS),
            _q("champion_commitment", "How committed are they to our solution?",
               "Measure their level of commitment", "scale", COMMITMENT_OPTIONS),
        ],
    },
    {
        "id": "competition",
        "name": "Competition",
        "description": "Assess competitive landscape and positioning",
        "weight": 4,
        "questions": [
            _q("competitors", "Who else are they considering?",
               "Identify competing solutions"),
            _q("competitive_advantages", "What are our competitive advantages?",
               "Define our unique value proposition"),
            _q("differentiation", "How do we differentiate ourselves?",
               "Explain what makes us different"),
            _q("win_probability", "What is our win probability?",
               "Assess likelihood of winning", "scale", WIN_PROBABILITY_OPTIONS),
        ],
    },
]

# excellent / good / fair cutoffs
DEFAULT_THRESHOLDS: Dict[str, float] = {"low": 80, "medium": 60, "high": 40}

DEFAULT_LITMUS_TEST: Dict[str, Any] = {
    "id": "litmus",
    "name": "Final Qualification Gate",
    "questions": [
        _q("budget_confirmed", "Is budget confirmed and available?",
           "Budget must be confirmed before advancing", "yes_no", [
               {"text": "Yes - Budget approved", "points": 10},
               {"text": "Yes - Budget allocated", "points": 8},
               {"text": "Yes - Budget identified", "points": 6},
               {"text": "No - Budget unclear", "points": 2},
           ]),
        _q("decision_timeline", "Is there a clear decision timeline?",
           "Clear timeline indicates serious intent", "yes_no", [
               {"text": "Yes - Specific date", "points": 10},
               {"text": "Yes - General timeframe", "points": 7},
               {"text": "No - Timeline unclear", "points": 3},
           ]),
        _q("champion_confirmed", "Do we have a confirmed champion?",
           "Champion is critical for success", "yes_no", [
               {"text": "Yes - Strong champion", "points": 10},
               {"text": "Yes - Moderate champion", "points": 7},
               {"text": "No - No champion", "points": 2},
           ]),
    ],
}

# Each criterion passes at 50% pillar completion
DEFAULT_STAGE_GATES: List[Dict[str, Any]] = [
    {
        "from_stage": "Prospecting",
        "to_stage": "Engaging",
        "criteria": [
            {"description": "Pain identified", "pillar_id": "identifyPain"},
            {"description": "Champion identified", "pillar_id": "champion"},
            {"description": "Budget confirmed", "pillar_id": "economicBuyer"},
        ],
    },
    {
        "from_stage": "Engaging",
        "to_stage": "Advancing",
        "criteria": [
            {"description": "Economic buyer engaged", "pillar_id": "economicBuyer"},
            {"description": "Decision criteria established", "pillar_id": "decisionCriteria"},
            {"description": "Decision process mapped", "pillar_id": "decisionProcess"},
        ],
    },
    {
        "from_stage": "Advancing",
        "to_stage": "Key Decision",
        "criteria": [
            {"description": "Paper process completed", "pillar_id": "paperProcess"},
            {"description": "Competition neutralized", "pillar_id": "competition"},
            {"description": "Champion committed", "pillar_id": "champion"},
        ],
    },
]


def default_rubric() -> RubricDefinition:
    """Build a fresh copy of the default rubric."""
    return RubricDefinition(
        pillars=[Pillar.model_validate(p) for p in DEFAULT_PILLARS],
        thresholds=Thresholds(**DEFAULT_THRESHOLDS),
        litmus_test=LitmusTest.model_validate(DEFAULT_LITMUS_TEST),
        stage_gates=[StageGate.model_validate(g) for g in DEFAULT_STAGE_GATES],
    )
