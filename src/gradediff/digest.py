"""Human-readable digest lines for a Changeset."""
from gradediff.changeset import Changeset, CourseAssignmentChange, CourseChange
from gradediff.models import Assignment, AssignmentScore


def grade_color(delta: float) -> str:
    if delta > 0:
        return "green"
    elif delta < 0:
        return "red"
    return "white"


def format_number(value: float) -> str:
    return f"{value:g}"


def format_score(score: AssignmentScore) -> str:
    if not score.graded:
        return "Not Graded"
    return f"{format_number(score.score)}/{format_number(score.possible_score)}"


def _course_label(change: CourseChange) -> str:
    return f"{change.course.id.name} (period {change.course.period})"


def _assignment_change_line(label: str, ac: CourseAssignmentChange) -> str:
    parts = []
    if ac.name_changed:
        parts.append(f"renamed from \"{ac.before.name}\"")
    if ac.score_changed or ac.possible_score_changed:
        direction = "up" if ac.score_increased else "down" if ac.score_changed else "rescaled"
        parts.append(f"score {format_score(ac.previous_score)} -> {format_score(ac.new_score)} ({direction})")
    if ac.points_changed or ac.possible_points_changed:
        parts.append(
            f"points {format_number(ac.previous_points.points)}/{format_number(ac.previous_points.possible_points)}"
            f" -> {format_number(ac.new_points.points)}/{format_number(ac.new_points.possible_points)}"
        )
    return f"{label}: \"{ac.after.name}\" " + ", ".join(parts)


def _assignment_line(label: str, verb: str, assignment: Assignment) -> str:
    return f"{label}: {verb} \"{assignment.name}\" [{assignment.type}] {format_score(assignment.score)}"


def format_changeset(changeset: Changeset) -> list[str]:
    """Return one line per reported change, grouped by kind."""
    if changeset.is_empty:
        return ["No changes"]

    lines = []
    for switch in changeset.course_switches:
        lines.append(
            f"{switch.after.id.name} moved from period {switch.before_period} to period {switch.after_period}"
        )
    for course in changeset.course_additions:
        lines.append(f"Added course {course.id.name} ({course.id.id}) in period {course.period}")
    for course in changeset.course_drops:
        lines.append(f"Dropped course {course.id.name} ({course.id.id}) from period {course.period}")

    for change in changeset.course_changes:
        label = _course_label(change)
        gc = change.grade_change
        if gc:
            sign = "+" if gc.grade_increased else ""
            lines.append(
                f"{label}: grade {format_number(gc.previous_grade_pct)}% ({gc.previous_letter_grade})"
                f" -> {format_number(gc.new_grade_pct)}% ({gc.new_letter_grade}),"
                f" {sign}{format_number(round(gc.delta_pct, 2))}%"
            )
        for ac in change.assignment_changes:
            lines.append(_assignment_change_line(label, ac))
        for assignment in change.assignment_additions:
            lines.append(_assignment_line(label, "new assignment", assignment))
        for assignment in change.assignment_removals:
            lines.append(_assignment_line(label, "removed assignment", assignment))
    return lines
