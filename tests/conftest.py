import pytest

from gradediff.models import (
    Assignment, AssignmentPoints, AssignmentScore, Course, CourseID, CourseMark,
    Gradebook, GradingPeriod,
)

PERIOD_NAMES = [
    "Q1 Progress", "Q1 Final", "Q2 Progress", "Q2 Final",
    "Q3 Progress", "Q3 Final", "Q4 Progress", "Q4 Final",
]

SAMPLE_XML = """<?xml version="1.0" encoding="utf-8"?>
<Gradebook>
  <ReportingPeriods>
    <ReportPeriod Index="0" GradePeriod="Q1 Progress" StartDate="9/6/2016" EndDate="10/7/2016" />
    <ReportPeriod Index="1" GradePeriod="Q1 Final" StartDate="10/8/2016" EndDate="11/10/2016" />
    <ReportPeriod Index="2" GradePeriod="Q2 Progress" StartDate="11/11/2016" EndDate="12/16/2016" />
    <ReportPeriod Index="3" GradePeriod="Q2 Final" StartDate="12/17/2016" EndDate="1/27/2017" />
  </ReportingPeriods>
  <ReportingPeriod GradePeriod="Q2 Progress" StartDate="11/11/2016" EndDate="12/16/2016" />
  <Courses>
    <Course Period="1" Title="Algebra II (ALG2-01)" Room="204" Staff="Smith, J" StaffEMail="jsmith@example.org">
      <Marks>
        <Mark MarkName="Q1" CalculatedScoreString="A" CalculatedScoreRaw="93.1">
          <GradeCalculationSummary>
            <AssignmentGradeCalc Type="Tests" Weight="60%" Points="90" PointsPossible="100" WeightedPct="54%" CalculatedMark="A" />
          </GradeCalculationSummary>
          <Assignments>
            <Assignment GradebookID="q1a" Measure="Chapter 1 Quiz" Type="Tests" Date="9/20/2016" DueDate="9/20/2016" Score="9 out of 10" ScoreType="Raw Score" Points="9.00/10.0000" Notes="" />
          </Assignments>
        </Mark>
        <Mark MarkName="Q2" CalculatedScoreString="B" CalculatedScoreRaw="88.0">
          <GradeCalculationSummary>
            <AssignmentGradeCalc Type="Homework" Weight="40%" Points="35" PointsPossible="40" WeightedPct="35%" CalculatedMark="B+" />
          </GradeCalculationSummary>
          <Assignments>
            <Assignment GradebookID="g1" Measure="Worksheet 4.2" Type="Homework" Date="11/14/2016" DueDate="11/15/2016" Score="8 out of 10" ScoreType="Raw Score" Points="8/10" Notes="late" />
            <Assignment GradebookID="g2" Measure="Unit 4 Test" Type="Tests" Date="11/18/2016" DueDate="11/18/2016" Score="Not Graded" ScoreType="Raw Score" Points="0/50" Notes="" />
          </Assignments>
        </Mark>
      </Marks>
    </Course>
    <Course Period="2" Title="Art (2D) (ART-2D)" Room="A1" Staff="Lee, K" StaffEMail="klee@example.org">
      <Marks>
        <Mark MarkName="Q1" CalculatedScoreString="A" CalculatedScoreRaw="97" />
        <Mark MarkName="Q2" CalculatedScoreString="A" CalculatedScoreRaw="95.5" />
      </Marks>
    </Course>
  </Courses>
</Gradebook>
"""


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_snapshots.db")
    return db_path


@pytest.fixture
def sample_xml():
    return SAMPLE_XML


def build_assignment(gradebook_id, name=None, score=8.0, possible=10.0, points=None,
                     possible_points=None, graded=True, type="Homework"):
    return Assignment(
        gradebook_id=gradebook_id,
        name=name or f"Assignment {gradebook_id}",
        type=type,
        date=None,
        due_date=None,
        score=AssignmentScore(graded=graded, score=score, possible_score=possible),
        points=AssignmentPoints(
            points=score if points is None else points,
            possible_points=possible if possible_points is None else possible_points,
        ),
    )


def build_course(period, course_id, name=None, grade=90.0, letter="A", assignments=None):
    mark = CourseMark(
        name="Q2", letter_grade=letter, raw_grade_score=grade,
        assignments=list(assignments or []),
    )
    return Course(
        period=period,
        id=CourseID(id=course_id, name=name or f"Course {course_id}"),
        marks=[CourseMark(name="Q1", letter_grade="A", raw_grade_score=95.0), mark],
    )


def build_gradebook(courses, current="Q2 Progress"):
    periods = [GradingPeriod(index=i, name=n) for i, n in enumerate(PERIOD_NAMES)]
    current_period = next((p for p in periods if p.name == current), GradingPeriod(index=0, name=current))
    gradebook = Gradebook(grading_periods=periods, current_grading_period=current_period, courses=list(courses))
    gradebook.assign_current_marks()
    return gradebook


@pytest.fixture
def make_assignment():
    return build_assignment


@pytest.fixture
def make_course():
    return build_course


@pytest.fixture
def make_gradebook():
    return build_gradebook
