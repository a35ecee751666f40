"""Constants and defaults.

Note: Grading policy lives here so a policy change is a single edit.
"""

from decimal import Decimal

# Weights must sum to 1.
GRADE_WEIGHTS = {
    "WRITTEN": Decimal("0.30"),
    "PERFORMANCE": Decimal("0.50"),
    "EXAM": Decimal("0.20"),
}

MIN_SCORE = 0
MAX_SCORE = 100
PASSING_GRADE = 75

MAX_REMARKS_LENGTH = 500
MAX_FEEDBACK_LENGTH = 2000

DEFAULT_TRANSITION_RETRIES = 1
DEFAULT_LIST_LIMIT = 200
