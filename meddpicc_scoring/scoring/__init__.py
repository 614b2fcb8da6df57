"""
scoring/: MEDDPICC Qualification Scoring

Modules:
    utils.py                  - Decimal utilities
    text_scorer.py            - Point resolution for options and free-text answers
    qualification_scorer.py   - Weighted total and risk classification
    response_normalizer.py    - Simple <-> comprehensive response conversion
    defaults.py               - Default MEDD(I)PICC rubric
"""
