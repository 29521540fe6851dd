"""Decode the portal's Gradebook XML document into model objects."""
import logging
import xml.etree.ElementTree as ET

from gradediff.decoders import (
    parse_course_title, parse_date, parse_percentage, parse_points, parse_score,
)
from gradediff.models import (
    Assignment, AssignmentGradeCalc, Course, CourseMark, Gradebook, GradingPeriod,
)

logger = logging.getLogger(__name__)


class GradebookDecodeError(ValueError):
    """Raised when the document is not a well-formed Gradebook."""


def _attr(elem: ET.Element, name: str) -> str:
    value = elem.get(name)
    if value is None:
        raise GradebookDecodeError(f"<{elem.tag}> is missing required attribute {name!r}")
    return value


def _float_attr(elem: ET.Element, name: str) -> float:
    raw = _attr(elem, name)
    try:
        return float(raw)
    except ValueError:
        raise GradebookDecodeError(f"<{elem.tag}> attribute {name!r} is not a number: {raw!r}") from None


def _int_attr(elem: ET.Element, name: str) -> int:
    raw = _attr(elem, name)
    try:
        return int(raw)
    except ValueError:
        raise GradebookDecodeError(f"<{elem.tag}> attribute {name!r} is not an integer: {raw!r}") from None


def _optional_date(elem: ET.Element, name: str):
    raw = elem.get(name)
    return parse_date(raw) if raw else None


def _find_gradebook(root: ET.Element) -> ET.Element:
    if root.tag == "Gradebook":
        return root
    found = root.find(".//Gradebook")
    if found is None:
        raise GradebookDecodeError("No <Gradebook> element in document")
    return found


def decode_grading_period(elem: ET.Element, default_index: int = None) -> GradingPeriod:
    if elem.get("Index") is None and default_index is not None:
        index = default_index
    else:
        index = _int_attr(elem, "Index")
    return GradingPeriod(
        index=index,
        name=_attr(elem, "GradePeriod"),
        start_date=_optional_date(elem, "StartDate"),
        end_date=_optional_date(elem, "EndDate"),
    )


def decode_assignment(elem: ET.Element) -> Assignment:
    return Assignment(
        gradebook_id=_attr(elem, "GradebookID"),
        name=_attr(elem, "Measure"),
        type=elem.get("Type", ""),
        date=_optional_date(elem, "Date"),
        due_date=_optional_date(elem, "DueDate"),
        score=parse_score(_attr(elem, "Score")),
        points=parse_points(_attr(elem, "Points")),
        score_type=elem.get("ScoreType", ""),
        notes=elem.get("Notes", ""),
    )


def decode_grade_calc(elem: ET.Element) -> AssignmentGradeCalc:
    return AssignmentGradeCalc(
        type=_attr(elem, "Type"),
        weight=parse_percentage(_attr(elem, "Weight")),
        points=_float_attr(elem, "Points"),
        points_possible=_float_attr(elem, "PointsPossible"),
        weighted_percentage=parse_percentage(_attr(elem, "WeightedPct")),
        letter_grade=elem.get("CalculatedMark", ""),
    )


def decode_mark(elem: ET.Element) -> CourseMark:
    return CourseMark(
        name=_attr(elem, "MarkName"),
        letter_grade=elem.get("CalculatedScoreString", ""),
        raw_grade_score=_float_attr(elem, "CalculatedScoreRaw"),
        grade_summaries=[
            decode_grade_calc(e)
            for e in elem.findall("GradeCalculationSummary/AssignmentGradeCalc")
        ],
        assignments=[decode_assignment(e) for e in elem.findall("Assignments/Assignment")],
    )


def decode_course(elem: ET.Element) -> Course:
    return Course(
        period=_int_attr(elem, "Period"),
        id=parse_course_title(_attr(elem, "Title")),
        room=elem.get("Room", ""),
        teacher=elem.get("Staff", ""),
        teacher_email=elem.get("StaffEMail", ""),
        marks=[decode_mark(e) for e in elem.findall("Marks/Mark")],
    )


def decode_gradebook(xml_text: str) -> Gradebook:
    """Parse a Gradebook document and point each course at its current mark.

    Raises:
        GradebookDecodeError: malformed XML or missing structure.
        FormatError: a scalar attribute is in the wrong format.
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise GradebookDecodeError(f"Malformed gradebook XML: {e}") from e

    gb_elem = _find_gradebook(root)
    current = gb_elem.find("ReportingPeriod")
    if current is None:
        raise GradebookDecodeError("<Gradebook> has no current <ReportingPeriod>")

    periods = [decode_grading_period(e) for e in gb_elem.findall("ReportingPeriods/ReportPeriod")]
    # The current period element usually omits Index; recover it by name.
    listed = next((p.index for p in periods if p.name == current.get("GradePeriod")), 0)

    gradebook = Gradebook(
        grading_periods=periods,
        current_grading_period=decode_grading_period(current, default_index=listed),
        courses=[decode_course(e) for e in gb_elem.findall("Courses/Course")],
    )
    gradebook.assign_current_marks()
    logger.debug(
        "Decoded gradebook: %d grading periods, %d courses, current period %r",
        len(gradebook.grading_periods), len(gradebook.courses),
        gradebook.current_grading_period.name,
    )
    return gradebook
