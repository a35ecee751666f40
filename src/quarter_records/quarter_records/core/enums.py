from __future__ import annotations

from datetime import date
from enum import Enum

from .exceptions import ValidationError


class Role(str, Enum):
    """Actor roles used for authorization."""

    ADMIN = "admin"
    ADVISER = "adviser"
    TEACHER = "teacher"


class GradingPeriod(str, Enum):
    Q1 = "Q1"
    Q2 = "Q2"
    Q3 = "Q3"
    Q4 = "Q4"

    @classmethod
    def parse(cls, value: "str | GradingPeriod") -> "GradingPeriod":
        """Accept Q1..Q4, 1..4 and 1st..4th (case-insensitive)."""
        if isinstance(value, GradingPeriod):
            return value

        v = str(value or "").strip().upper()
        aliases = {
            "Q1": cls.Q1, "1": cls.Q1, "1ST": cls.Q1,
            "Q2": cls.Q2, "2": cls.Q2, "2ND": cls.Q2,
            "Q3": cls.Q3, "3": cls.Q3, "3RD": cls.Q3,
            "Q4": cls.Q4, "4": cls.Q4, "4TH": cls.Q4,
        }
        if v not in aliases:
            raise ValidationError(f"Invalid grading period: {value!r}")
        return aliases[v]

    @classmethod
    def for_date(cls, d: date) -> "GradingPeriod":
        return (cls.Q1, cls.Q2, cls.Q3, cls.Q4)[(d.month - 1) // 3]


class PackageStatus(str, Enum):
    """Quarter package lifecycle states (persisted as-is)."""

    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    RETURNED = "RETURNED"
    APPROVED = "APPROVED"
    FORWARDED_TO_ADMIN = "FORWARDED_TO_ADMIN"
    PUBLISHED = "PUBLISHED"


class ApprovalAction(str, Enum):
    SUBMIT = "SUBMIT"
    APPROVE = "APPROVE"
    RETURN = "RETURN"
    FORWARD = "FORWARD"
    PUBLISH = "PUBLISH"


class ComponentType(str, Enum):
    WRITTEN = "WRITTEN"
    PERFORMANCE = "PERFORMANCE"
    EXAM = "EXAM"
    FINAL = "FINAL"


# Components a teacher must record before a package can be submitted.
REQUIRED_COMPONENTS = (ComponentType.WRITTEN, ComponentType.PERFORMANCE, ComponentType.EXAM)


class AttendanceStatus(str, Enum):
    """Attendance status stored per student per class-day."""

    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    LATE = "LATE"
