"""
Run registry - track fetch runs with status, row counts, and timing.
Thin IO layer for run lifecycle management.
"""

import sqlite3
from datetime import datetime
from typing import Dict, Any, List, Optional
from enum import Enum


class RunStatus(str, Enum):
    """Enumeration of run statuses."""
    RUNNING = 'running'
    COMPLETED = 'completed'
    FAILED = 'failed'


class RunNotFoundError(Exception):
    """Raised when run ID is not found."""
    pass


def start_run(
    conn: sqlite3.Connection,
    dag_name: str,
    started_at: Optional[datetime] = None
) -> int:
    """
    Start a new pipeline run and return run ID.

    Args:
        conn: SQLite connection
        dag_name: Name of the pipeline being run (e.g. 'fund_data:513100')
        started_at: Start timestamp (defaults to now)

    Returns:
        Run ID for tracking this execution
    """
    if started_at is None:
        started_at = datetime.now()

    cursor = conn.execute("""
        INSERT INTO runs (dag_name, started_at, status)
        VALUES (?, ?, ?)
    """, (dag_name, _to_db(started_at), RunStatus.RUNNING.value))

    conn.commit()
    return cursor.lastrowid


def finish_run(
    conn: sqlite3.Connection,
    run_id: int,
    status: RunStatus,
    finished_at: Optional[datetime] = None,
    rows_in: Optional[int] = None,
    rows_out: Optional[int] = None,
    error_message: Optional[str] = None
) -> None:
    """
    Mark a run as finished with final status and row counts.

    Args:
        conn: SQLite connection
        run_id: Run ID from start_run()
        status: Final status (COMPLETED or FAILED)
        finished_at: End timestamp (defaults to now)
        rows_in: Price observations fetched
        rows_out: Enriched points produced
        error_message: Error message if failed

    Raises:
        RunNotFoundError: If run_id doesn't exist
    """
    if finished_at is None:
        finished_at = datetime.now()

    cursor = conn.execute("SELECT run_id FROM runs WHERE run_id = ?", (run_id,))
    if cursor.fetchone() is None:
        raise RunNotFoundError(f"Run ID {run_id} not found")

    conn.execute("""
        UPDATE runs SET
            status = ?,
            finished_at = ?,
            rows_in = ?,
            rows_out = ?,
            error_message = ?
        WHERE run_id = ?
    """, (RunStatus(status).value, _to_db(finished_at), rows_in, rows_out, error_message, run_id))

    conn.commit()


def get_run_status(conn: sqlite3.Connection, run_id: int) -> Dict[str, Any]:
    """
    Get detailed status for a run.

    Args:
        conn: SQLite connection
        run_id: Run ID to query

    Returns:
        Dictionary with run details and duration

    Raises:
        RunNotFoundError: If run_id doesn't exist
    """
    cursor = conn.execute("""
        SELECT run_id, dag_name, started_at, finished_at, status,
               rows_in, rows_out, error_message
        FROM runs
        WHERE run_id = ?
    """, (run_id,))

    row = cursor.fetchone()
    if row is None:
        raise RunNotFoundError(f"Run ID {run_id} not found")

    return _row_to_run(row)


def list_recent_runs(
    conn: sqlite3.Connection,
    limit: int = 50,
    dag_name: Optional[str] = None
) -> List[Dict[str, Any]]:
    """
    List recent runs, most recent first.

    Args:
        conn: SQLite connection
        limit: Maximum number of runs to return
        dag_name: Filter by specific pipeline name (optional)

    Returns:
        List of run dictionaries
    """
    query = """
        SELECT run_id, dag_name, started_at, finished_at, status,
               rows_in, rows_out, error_message
        FROM runs
    """
    params: tuple = ()
    if dag_name:
        query += " WHERE dag_name = ?"
        params = (dag_name,)
    query += " ORDER BY started_at DESC, run_id DESC LIMIT ?"
    params += (limit,)

    return [_row_to_run(row) for row in conn.execute(query, params).fetchall()]


def last_stored_run(conn: sqlite3.Connection, dag_name: str) -> Optional[Dict[str, Any]]:
    """
    Most recent completed run that produced points, i.e. the run behind the
    currently stored series. Runs that came back empty leave the series
    untouched, so they are skipped.

    Args:
        conn: SQLite connection
        dag_name: Pipeline name (e.g. 'fund_data:513100')

    Returns:
        Run dictionary, or None if no run has stored data yet
    """
    row = conn.execute("""
        SELECT run_id, dag_name, started_at, finished_at, status,
               rows_in, rows_out, error_message
        FROM runs
        WHERE dag_name = ? AND status = ? AND rows_out > 0
        ORDER BY started_at DESC, run_id DESC
        LIMIT 1
    """, (dag_name, RunStatus.COMPLETED.value)).fetchone()

    return _row_to_run(row) if row is not None else None


def _row_to_run(row) -> Dict[str, Any]:
    run_info = {
        'run_id': row[0],
        'dag_name': row[1],
        'started_at': datetime.fromisoformat(row[2]) if row[2] else None,
        'finished_at': datetime.fromisoformat(row[3]) if row[3] else None,
        'status': RunStatus(row[4]),
        'rows_in': row[5],
        'rows_out': row[6],
        'error_message': row[7]
    }

    if run_info['started_at'] and run_info['finished_at']:
        duration = run_info['finished_at'] - run_info['started_at']
        run_info['duration_seconds'] = duration.total_seconds()
    else:
        run_info['duration_seconds'] = None

    return run_info


def _to_db(value: datetime) -> str:
    return value.isoformat(sep=' ')
