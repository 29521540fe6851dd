"""Data classes for one captured gradebook snapshot."""
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

logger = logging.getLogger(__name__)

# The portal lists two report periods (half-quarters) for every term that
# carries a mark, so report-period index N maps to mark index N // 2.
REPORT_PERIODS_PER_TERM = 2


def term_index_for(period_index: int) -> int:
    """Map a report-period index onto the index of the matching course mark."""
    return period_index // REPORT_PERIODS_PER_TERM


@dataclass(frozen=True)
class GradingPeriod:
    index: int
    name: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None


@dataclass(frozen=True)
class CourseID:
    id: str
    name: str


@dataclass(frozen=True)
class AssignmentScore:
    graded: bool
    score: float
    possible_score: float


@dataclass(frozen=True)
class AssignmentPoints:
    points: float
    possible_points: float


@dataclass
class AssignmentGradeCalc:
    type: str
    weight: float
    points: float
    points_possible: float
    weighted_percentage: float
    letter_grade: str = ""


@dataclass
class Assignment:
    gradebook_id: str
    name: str
    type: str
    date: Optional[date]
    due_date: Optional[date]
    score: AssignmentScore
    points: AssignmentPoints
    score_type: str = ""
    notes: str = ""


@dataclass
class CourseMark:
    name: str
    letter_grade: str
    raw_grade_score: float
    grade_summaries: list[AssignmentGradeCalc] = field(default_factory=list)
    assignments: list[Assignment] = field(default_factory=list)


@dataclass
class Course:
    period: int
    id: CourseID
    room: str = ""
    teacher: str = ""
    teacher_email: str = ""
    marks: list[CourseMark] = field(default_factory=list)
    current_mark: Optional[CourseMark] = field(default=None, compare=False, repr=False)


@dataclass
class Gradebook:
    grading_periods: list[GradingPeriod]
    current_grading_period: GradingPeriod
    courses: list[Course] = field(default_factory=list)

    def current_grading_period_index(self) -> int:
        """Return the mark index for the current grading period.

        Falls back to 0 when the current period's name is not among
        ``grading_periods``.
        """
        name = self.current_grading_period.name
        for period in self.grading_periods:
            if period.name == name:
                return term_index_for(period.index)
        logger.debug("Current grading period %r not listed; using mark index 0", name)
        return 0

    def assign_current_marks(self) -> None:
        index = self.current_grading_period_index()
        for course in self.courses:
            course.current_mark = course.marks[index] if index < len(course.marks) else None

    def course_for_period(self, period: int) -> Optional[Course]:
        for course in self.courses:
            if course.period == period:
                return course
        return None
