# tests/test_integration.py
"""End-to-end test of the core workflow."""
import json

from gradediff.db import init_db
from gradediff.digest import format_changeset
from gradediff.snapshots import diff_latest, save_snapshot


def test_yesterday_vs_today(tmp_db, sample_xml):
    """Store two captures, reconcile them and render the digest."""
    init_db(tmp_db)
    save_snapshot(tmp_db, sample_xml, captured_at="2016-11-20T18:00:00")

    # Overnight: the unit test got graded, a worksheet was added,
    # the grade dropped and Art moved to period 6.
    today = (
        sample_xml
        .replace('Score="Not Graded" ScoreType="Raw Score" Points="0/50"',
                 'Score="40 out of 50" ScoreType="Raw Score" Points="40/50"')
        .replace(
            '</Assignments>\n        </Mark>\n      </Marks>\n    </Course>\n    <Course Period="2"',
            '  <Assignment GradebookID="g3" Measure="Worksheet 4.3" Type="Homework" Date="11/21/2016" '
            'DueDate="11/22/2016" Score="Not Graded" ScoreType="Raw Score" Points="0/10" Notes="" />\n'
            '          </Assignments>\n        </Mark>\n      </Marks>\n    </Course>\n    <Course Period="6"',
        )
        .replace('CalculatedScoreRaw="88.0"', 'CalculatedScoreRaw="86.25"')
    )
    save_snapshot(tmp_db, today, captured_at="2016-11-21T18:00:00")

    changeset = diff_latest(tmp_db)
    assert [(s.before_period, s.after_period) for s in changeset.course_switches] == [(2, 6)]
    assert changeset.course_additions == []
    assert changeset.course_drops == []

    assert len(changeset.course_changes) == 1
    change = changeset.course_changes[0]
    assert change.grade_change.delta_pct == -1.75
    assert [a.after.gradebook_id for a in change.assignment_changes] == ["g2"]
    assert change.assignment_changes[0].score_increased is True
    assert [a.gradebook_id for a in change.assignment_additions] == ["g3"]
    assert change.assignment_removals == []

    json.dumps(changeset.to_dict())
    lines = format_changeset(changeset)
    assert lines[0] == "Art (2D) moved from period 2 to period 6"
    assert len(lines) == 4
