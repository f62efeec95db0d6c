"""
Database loaders - enriched series persistence for SQLite.
Thin IO layer with focus on data integrity and idempotence.
"""

import os
import sqlite3
from datetime import date
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from analysis.models import EnrichedPoint

load_dotenv()

DEFAULT_DB_PATH = './data/premium_watch.db'


def init_database(conn: sqlite3.Connection) -> None:
    """
    Initialize database with required tables.
    Idempotent - safe to call multiple times.

    Args:
        conn: SQLite connection
    """
    conn.execute("""
        CREATE TABLE IF NOT EXISTS enriched_points (
            ticker TEXT NOT NULL,
            date DATE NOT NULL,
            close_price REAL NOT NULL,
            ref_date DATE NOT NULL,
            reference_value REAL NOT NULL,
            premium_rate REAL NOT NULL,
            rsi REAL NOT NULL,
            volatility REAL NOT NULL,
            lag_days INTEGER NOT NULL,
            source TEXT NOT NULL,
            PRIMARY KEY (ticker, date)
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS settings (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS runs (
            run_id INTEGER PRIMARY KEY AUTOINCREMENT,
            dag_name TEXT NOT NULL,
            started_at DATETIME NOT NULL,
            finished_at DATETIME,
            status TEXT NOT NULL CHECK(status IN ('running', 'completed', 'failed')),
            rows_in INTEGER,
            rows_out INTEGER,
            error_message TEXT
        )
    """)

    conn.execute("CREATE INDEX IF NOT EXISTS idx_points_ticker ON enriched_points(ticker)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_runs_status ON runs(status)")

    conn.commit()


def get_db_path() -> str:
    """Database path from PREMIUM_WATCH_DB_PATH, or the default under ./data."""
    return os.getenv('PREMIUM_WATCH_DB_PATH', DEFAULT_DB_PATH)


def get_connection(db_path: Optional[str] = None) -> sqlite3.Connection:
    """
    Get SQLite connection with proper configuration.
    Creates the parent directory and tables when missing.

    Args:
        db_path: Path to SQLite database file (defaults to env)

    Returns:
        Configured SQLite connection
    """
    db_path = db_path or get_db_path()
    if db_path != ':memory:':
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    conn.execute("PRAGMA journal_mode = WAL")
    init_database(conn)
    return conn


def replace_series(conn: sqlite3.Connection, ticker: str, points: List[EnrichedPoint]) -> int:
    """
    Replace the stored series of a ticker with a freshly fetched one.

    A fetch produces the whole series, so old points are deleted rather
    than patched; dates missing from the new fetch disappear.

    Args:
        conn: SQLite connection
        ticker: Fund ticker
        points: New enriched series

    Returns:
        Number of rows written
    """
    with conn:
        conn.execute("DELETE FROM enriched_points WHERE ticker = ?", (ticker,))
        conn.executemany("""
            INSERT INTO enriched_points (
                ticker, date, close_price, ref_date, reference_value,
                premium_rate, rsi, volatility, lag_days, source
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, [
            (
                ticker, p.date.isoformat(), p.close_price, p.ref_date.isoformat(),
                p.reference_value, p.premium_rate, p.rsi, p.volatility,
                p.lag_days, p.source
            )
            for p in points
        ])

    return len(points)


def load_series(conn: sqlite3.Connection, ticker: str) -> List[EnrichedPoint]:
    """
    Load the stored series of a ticker, ascending by date.

    Args:
        conn: SQLite connection
        ticker: Fund ticker

    Returns:
        List of EnrichedPoint (empty if nothing stored)
    """
    cursor = conn.execute("""
        SELECT date, close_price, ref_date, reference_value, premium_rate,
               rsi, volatility, lag_days, source
        FROM enriched_points
        WHERE ticker = ?
        ORDER BY date
    """, (ticker,))

    return [
        EnrichedPoint(
            date=date.fromisoformat(row[0]),
            close_price=row[1],
            ref_date=date.fromisoformat(row[2]),
            reference_value=row[3],
            premium_rate=row[4],
            rsi=row[5],
            volatility=row[6],
            lag_days=row[7],
            source=row[8]
        )
        for row in cursor.fetchall()
    ]
