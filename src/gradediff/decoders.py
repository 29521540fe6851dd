"""Parsers for the scalar attribute formats used by the gradebook portal."""
import math
import re
from datetime import date

from gradediff.models import AssignmentPoints, AssignmentScore, CourseID

NOT_GRADED = "Not Graded"

_NUMBER = r"\d+(?:\.\d+)?|\.\d+"
_DATE_RE = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})")
_SCORE_RE = re.compile(rf"({_NUMBER})\s*out\s*of\s*({_NUMBER})")
_POINTS_RE = re.compile(rf"({_NUMBER})\s*/\s*({_NUMBER})")
_ID_GROUP_RE = re.compile(r"\(([^()]+)\)")


class FormatError(ValueError):
    """Raised when a raw attribute string does not match its expected format."""

    def __init__(self, kind: str, value: str, expected: str):
        self.kind = kind
        self.value = value
        super().__init__(f"Expected {kind} in format `{expected}`, received {value!r}")


def parse_percentage(raw: str) -> float:
    text = raw.strip()
    if not text.endswith("%"):
        raise FormatError("percentage", raw, "x%")
    try:
        value = float(text[:-1])
    except ValueError:
        raise FormatError("percentage", raw, "x%") from None
    if not math.isfinite(value):
        raise FormatError("percentage", raw, "x%")
    return value


def parse_date(raw: str) -> date:
    match = _DATE_RE.fullmatch(raw.strip())
    if not match:
        raise FormatError("date", raw, "M/D/YYYY")
    month, day, year = (int(g) for g in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        raise FormatError("date", raw, "M/D/YYYY") from None


def parse_score(raw: str) -> AssignmentScore:
    """Parse an assignment score such as ``"9 out of 10"`` or ``"Not Graded"``."""
    text = raw.strip()
    if text == NOT_GRADED:
        return AssignmentScore(graded=False, score=0.0, possible_score=0.0)
    match = _SCORE_RE.fullmatch(text)
    if not match:
        raise FormatError("score", raw, "x out of y")
    return AssignmentScore(graded=True, score=float(match.group(1)), possible_score=float(match.group(2)))


def parse_points(raw: str) -> AssignmentPoints:
    match = _POINTS_RE.fullmatch(raw.strip())
    if not match:
        raise FormatError("points", raw, "x/y")
    return AssignmentPoints(points=float(match.group(1)), possible_points=float(match.group(2)))


def parse_course_title(raw: str) -> CourseID:
    """Split a ``"Name (ID)"`` title into its display name and stable ID.

    The name may carry its own parentheses, e.g. ``"Art (2D) (ART-2D)"``;
    the trailing group is always taken as the ID.
    """
    groups = list(_ID_GROUP_RE.finditer(raw))
    if not groups:
        raise FormatError("course title", raw, "Course Name (ID)")
    last = groups[-1]
    name = raw[:last.start()].strip()
    course_id = last.group(1).strip()
    if not name or not course_id:
        raise FormatError("course title", raw, "Course Name (ID)")
    return CourseID(id=course_id, name=name)
