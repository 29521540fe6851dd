"""Reconcile two gradebook snapshots into a Changeset.

The older snapshot is compared against the newer one in three stages:

1. Course sets are matched by class period, then by stable course ID, to
   find switches, additions and drops.
2. For every matched course pair, the assignments of the current mark are
   matched by gradebook ID and diffed field by field.
3. The raw percentage of the current mark is compared for a grade change.

Neither input snapshot is modified.
"""
import logging
from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Optional

from gradediff.models import (
    Assignment, AssignmentPoints, AssignmentScore, Course, CourseMark, Gradebook,
)

logger = logging.getLogger(__name__)

SEMESTER_MARKERS = {
    1: ("Q1", "Q2"),
    2: ("Q3", "Q4"),
}


class SemesterMismatchError(Exception):
    """The two snapshots' current grading periods fall in different semesters."""

    def __init__(self, older_label: str, newer_label: str, older_semester: int, newer_semester: int):
        self.older_label = older_label
        self.newer_label = newer_label
        self.older_semester = older_semester
        self.newer_semester = newer_semester
        super().__init__(
            f"The current grading periods of the two gradebooks do not match: "
            f"{older_label!r} is in semester {older_semester} and "
            f"{newer_label!r} is in semester {newer_semester}"
        )


def semester_of(label: str) -> Optional[int]:
    """Return 1 or 2 for a label carrying a quarter marker, else None."""
    upper = label.upper()
    for semester, markers in SEMESTER_MARKERS.items():
        if any(m in upper for m in markers):
            return semester
    return None


def check_same_semester(older: Gradebook, newer: Gradebook) -> None:
    older_label = older.current_grading_period.name
    newer_label = newer.current_grading_period.name
    a, b = semester_of(older_label), semester_of(newer_label)
    if a is not None and b is not None and a != b:
        raise SemesterMismatchError(older_label, newer_label, a, b)


def _course_summary(course: Course) -> dict:
    return {"period": course.period, "id": course.id.id, "name": course.id.name}


def _assignment_summary(assignment: Assignment) -> dict:
    return {
        "gradebook_id": assignment.gradebook_id,
        "name": assignment.name,
        "type": assignment.type,
        "score": _score_dict(assignment.score),
        "points": _points_dict(assignment.points),
    }


def _score_dict(score: AssignmentScore) -> dict:
    return {"graded": score.graded, "score": score.score, "possible_score": score.possible_score}


def _points_dict(points: AssignmentPoints) -> dict:
    return {"points": points.points, "possible_points": points.possible_points}


@dataclass
class CourseSwitch:
    before: Course
    after: Course
    before_period: int
    after_period: int

    def to_dict(self) -> dict:
        return {
            "before": _course_summary(self.before),
            "after": _course_summary(self.after),
            "before_period": self.before_period,
            "after_period": self.after_period,
        }


@dataclass
class CourseGradeChange:
    delta_pct: float
    grade_increased: bool
    previous_grade_pct: float
    new_grade_pct: float
    previous_letter_grade: str
    new_letter_grade: str

    def to_dict(self) -> dict:
        return {
            "delta_pct": self.delta_pct,
            "grade_increased": self.grade_increased,
            "previous_grade_pct": self.previous_grade_pct,
            "new_grade_pct": self.new_grade_pct,
            "previous_letter_grade": self.previous_letter_grade,
            "new_letter_grade": self.new_letter_grade,
        }


@dataclass
class CourseAssignmentChange:
    before: Assignment
    after: Assignment
    name_changed: bool
    score_changed: bool
    possible_score_changed: bool
    points_changed: bool
    possible_points_changed: bool
    score_increased: bool
    points_increased: bool

    @property
    def previous_score(self) -> AssignmentScore:
        return self.before.score

    @property
    def new_score(self) -> AssignmentScore:
        return self.after.score

    @property
    def previous_points(self) -> AssignmentPoints:
        return self.before.points

    @property
    def new_points(self) -> AssignmentPoints:
        return self.after.points

    def to_dict(self) -> dict:
        return {
            "gradebook_id": self.after.gradebook_id,
            "previous_name": self.before.name,
            "new_name": self.after.name,
            "name_changed": self.name_changed,
            "score_changed": self.score_changed,
            "possible_score_changed": self.possible_score_changed,
            "points_changed": self.points_changed,
            "possible_points_changed": self.possible_points_changed,
            "score_increased": self.score_increased,
            "points_increased": self.points_increased,
            "previous_score": _score_dict(self.previous_score),
            "new_score": _score_dict(self.new_score),
            "previous_points": _points_dict(self.previous_points),
            "new_points": _points_dict(self.new_points),
        }


@dataclass
class CourseChange:
    course: Course
    after: Course
    grade_change: Optional[CourseGradeChange] = None
    assignment_changes: list[CourseAssignmentChange] = field(default_factory=list)
    assignment_additions: list[Assignment] = field(default_factory=list)
    assignment_removals: list[Assignment] = field(default_factory=list)

    def has_changes(self) -> bool:
        return bool(
            self.grade_change
            or self.assignment_changes
            or self.assignment_additions
            or self.assignment_removals
        )

    def to_dict(self) -> dict:
        return {
            "course": _course_summary(self.course),
            "after": _course_summary(self.after),
            "grade_change": self.grade_change.to_dict() if self.grade_change else None,
            "assignment_changes": [c.to_dict() for c in self.assignment_changes],
            "assignment_additions": [_assignment_summary(a) for a in self.assignment_additions],
            "assignment_removals": [_assignment_summary(a) for a in self.assignment_removals],
        }


@dataclass
class Changeset:
    older: Gradebook = field(repr=False)
    newer: Gradebook = field(repr=False)
    course_switches: list[CourseSwitch] = field(default_factory=list)
    course_additions: list[Course] = field(default_factory=list)
    course_drops: list[Course] = field(default_factory=list)
    course_changes: list[CourseChange] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (
            self.course_switches or self.course_additions
            or self.course_drops or self.course_changes
        )

    def to_dict(self) -> dict:
        return {
            "older_grading_period": self.older.current_grading_period.name,
            "newer_grading_period": self.newer.current_grading_period.name,
            "course_switches": [s.to_dict() for s in self.course_switches],
            "course_additions": [_course_summary(c) for c in self.course_additions],
            "course_drops": [_course_summary(c) for c in self.course_drops],
            "course_changes": [c.to_dict() for c in self.course_changes],
        }


def reconcile(older: Gradebook, newer: Gradebook) -> Changeset:
    """Compute the Changeset from ``older`` to ``newer``.

    Raises:
        SemesterMismatchError: the snapshots are from different semesters.
    """
    check_same_semester(older, newer)

    changeset = Changeset(older=older, newer=newer)
    pairs = diff_course_sets(older, newer, changeset)
    for course_a, course_b in pairs:
        change = diff_course(course_a, course_b)
        if change is not None:
            changeset.course_changes.append(change)

    logger.info(
        "Reconciled %r -> %r: %d switches, %d additions, %d drops, %d changed courses",
        older.current_grading_period.name, newer.current_grading_period.name,
        len(changeset.course_switches), len(changeset.course_additions),
        len(changeset.course_drops), len(changeset.course_changes),
    )
    return changeset


def diff_course_sets(older: Gradebook, newer: Gradebook, changeset: Changeset) -> list[tuple[Course, Course]]:
    """Fill switches, additions and drops; return the matched course pairs.

    A course keeping both its period and ID is paired first; otherwise it
    is paired with any unclaimed newer course carrying the same ID.
    """
    by_period_a = {c.period: c for c in older.courses}
    by_period_b = {c.period: c for c in newer.courses}
    # Newer courses still available for matching, keyed by period.
    pool = dict(by_period_b)
    pairs = []
    unmatched_a = []

    for period, course_a in by_period_a.items():
        course_b = pool.get(period)
        if course_b is not None and course_b.id.id == course_a.id.id:
            del pool[period]
            pairs.append((course_a, course_b))
        else:
            unmatched_a.append(course_a)

    for course_a in unmatched_a:
        match = next((p for p, c in pool.items() if c.id.id == course_a.id.id), None)
        if match is None:
            logger.debug("Course %s dropped from period %d", course_a.id.id, course_a.period)
            changeset.course_drops.append(course_a)
            continue
        course_b = pool.pop(match)
        changeset.course_switches.append(CourseSwitch(
            before=course_a,
            after=course_b,
            before_period=course_a.period,
            after_period=course_b.period,
        ))
        pairs.append((course_a, course_b))

    older_ids = {c.id.id for c in by_period_a.values()}
    for course_b in pool.values():
        if course_b.id.id in older_ids:
            logger.debug("Skipping duplicate course %s at period %d", course_b.id.id, course_b.period)
            continue
        changeset.course_additions.append(course_b)

    pairs.sort(key=lambda pair: pair[0].period)
    return pairs


def diff_course(course_a: Course, course_b: Course) -> Optional[CourseChange]:
    """Diff the current marks of a matched course pair."""
    mark_a, mark_b = course_a.current_mark, course_b.current_mark
    if mark_a is None or mark_b is None:
        logger.debug("Course %s has no current mark in one snapshot; skipping", course_a.id.id)
        return None

    change = CourseChange(course=course_a, after=course_b)
    diff_assignment_lists(mark_a.assignments, mark_b.assignments, change)
    change.grade_change = diff_grade(mark_a, mark_b)
    return change if change.has_changes() else None


def diff_assignment_lists(before: list[Assignment], after: list[Assignment], change: CourseChange) -> None:
    """Match assignments by gradebook ID regardless of position.

    Repeated IDs are paired in order of appearance.
    """
    remaining = defaultdict(deque)
    for b in after:
        remaining[b.gradebook_id].append(b)

    claimed = set()
    for a in before:
        candidates = remaining.get(a.gradebook_id)
        if not candidates:
            change.assignment_removals.append(a)
            continue
        b = candidates.popleft()
        claimed.add(id(b))
        assignment_change = diff_assignments(a, b)
        if assignment_change is not None:
            change.assignment_changes.append(assignment_change)

    change.assignment_additions.extend(b for b in after if id(b) not in claimed)


def diff_assignments(a: Assignment, b: Assignment) -> Optional[CourseAssignmentChange]:
    """Compare two assignments sharing a gradebook ID; None if nothing changed."""
    score_delta = b.score.score - a.score.score
    points_delta = b.points.points - a.points.points

    name_changed = a.name != b.name
    score_changed = score_delta != 0
    possible_score_changed = b.score.possible_score - a.score.possible_score != 0
    points_changed = points_delta != 0
    possible_points_changed = b.points.possible_points - a.points.possible_points != 0

    if not (name_changed or score_changed or possible_score_changed
            or points_changed or possible_points_changed):
        return None

    return CourseAssignmentChange(
        before=a,
        after=b,
        name_changed=name_changed,
        score_changed=score_changed,
        possible_score_changed=possible_score_changed,
        points_changed=points_changed,
        possible_points_changed=possible_points_changed,
        score_increased=score_delta > 0,
        points_increased=points_delta > 0,
    )


def diff_grade(mark_a: CourseMark, mark_b: CourseMark) -> Optional[CourseGradeChange]:
    delta = mark_b.raw_grade_score - mark_a.raw_grade_score
    if delta == 0:
        return None
    return CourseGradeChange(
        delta_pct=delta,
        grade_increased=delta > 0,
        previous_grade_pct=mark_a.raw_grade_score,
        new_grade_pct=mark_b.raw_grade_score,
        previous_letter_grade=mark_a.letter_grade,
        new_letter_grade=mark_b.letter_grade,
    )
