"""Archive of raw gradebook snapshots, so any two captures can be compared."""
import logging
from datetime import datetime

from gradediff.changeset import Changeset, reconcile
from gradediff.db import get_connection
from gradediff.models import Gradebook
from gradediff.xml_decode import decode_gradebook

logger = logging.getLogger(__name__)


def save_snapshot(db_path: str, xml_text: str, captured_at: str = None) -> int:
    """Decode and store a snapshot; returns its id.

    The document is decoded first so an unreadable capture is never stored.
    """
    gradebook = decode_gradebook(xml_text)
    captured_at = captured_at or datetime.now().isoformat(timespec="seconds")
    conn = get_connection(db_path)
    cursor = conn.execute(
        "INSERT INTO snapshots (captured_at, grading_period, course_count, raw_xml) VALUES (?, ?, ?, ?)",
        (captured_at, gradebook.current_grading_period.name, len(gradebook.courses), xml_text),
    )
    conn.commit()
    snapshot_id = cursor.lastrowid
    conn.close()
    logger.info("Stored snapshot %d captured at %s", snapshot_id, captured_at)
    return snapshot_id


def list_snapshots(db_path: str) -> list[dict]:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT id, captured_at, grading_period, course_count FROM snapshots ORDER BY captured_at, id"
    ).fetchall()
    conn.close()
    return [dict(r) for r in rows]


def load_snapshot(db_path: str, snapshot_id: int) -> Gradebook:
    conn = get_connection(db_path)
    row = conn.execute("SELECT raw_xml FROM snapshots WHERE id = ?", (snapshot_id,)).fetchone()
    conn.close()
    if row is None:
        raise KeyError(f"No snapshot with id {snapshot_id}")
    return decode_gradebook(row["raw_xml"])


def get_latest_pair(db_path: str) -> tuple[Gradebook, Gradebook] | None:
    """Return the (older, newer) pair of the two most recent captures."""
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT raw_xml FROM snapshots ORDER BY captured_at DESC, id DESC LIMIT 2"
    ).fetchall()
    conn.close()
    if len(rows) < 2:
        return None
    return decode_gradebook(rows[1]["raw_xml"]), decode_gradebook(rows[0]["raw_xml"])


def diff_snapshots(db_path: str, older_id: int, newer_id: int) -> Changeset:
    return reconcile(load_snapshot(db_path, older_id), load_snapshot(db_path, newer_id))


def diff_latest(db_path: str) -> Changeset | None:
    pair = get_latest_pair(db_path)
    if pair is None:
        return None
    return reconcile(*pair)
