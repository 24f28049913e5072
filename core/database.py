"""Module that holds the employee database connection as a module-global.

Tools receive the connection through the server's `db` parameter injection, which reads it
from here via `get_database()`. The server populates it during start-up using `set_database()`.
"""
import logging
import sqlite3
from typing import Optional

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS employees (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    department TEXT NOT NULL,
    level TEXT NOT NULL,
    performance_score REAL NOT NULL,
    quarterly_rating TEXT NOT NULL,
    bonus REAL NOT NULL,
    hire_date DATE NOT NULL,
    manager_id INTEGER,
    FOREIGN KEY (manager_id) REFERENCES employees(id)
)
"""

INSERT_EMPLOYEE = """
INSERT INTO employees (name, department, level, performance_score, quarterly_rating, bonus, hire_date, manager_id)
VALUES (?, ?, ?, ?, ?, ?, ?, ?)
"""

# Insertion order fixes the ids (1..12) that manager_id refers to.
SAMPLE_EMPLOYEES = [
    # managers
    ("田中マネージャー", "技術部", "M2", 4.8, "A+", 50000, "2020-01-15", None),
    ("山田部長", "プロダクト部", "M3", 4.6, "A", 80000, "2019-03-20", None),
    ("佐藤主任", "技術部", "M1", 4.4, "A", 35000, "2021-06-10", 1),
    # senior engineers
    ("鈴木エンジニア", "技術部", "P7", 4.2, "A", 30000, "2021-08-15", 3),
    ("高橋エンジニア", "技術部", "P6", 3.8, "B+", 25000, "2022-01-20", 3),
    ("渡辺エンジニア", "技術部", "P6", 4.0, "A", 28000, "2022-03-10", 3),
    # mid-level engineers
    ("伊藤エンジニア", "技術部", "P5", 3.6, "B+", 18000, "2022-09-01", 4),
    ("松本エンジニア", "技術部", "P5", 3.4, "B", 15000, "2023-02-15", 4),
    ("中村エンジニア", "技術部", "P4", 3.2, "B", 12000, "2023-05-20", 5),
    # product team
    ("小林プロダクト", "プロダクト部", "P6", 4.1, "A", 26000, "2021-11-10", 2),
    ("加藤プロダクト", "プロダクト部", "P5", 3.7, "B+", 20000, "2022-07-15", 10),
    ("吉田プロダクト", "プロダクト部", "P4", 3.3, "B", 14000, "2023-01-08", 10),
]

_database: Optional[sqlite3.Connection] = None


def open_database(path: str = ":memory:", seed: bool = True) -> sqlite3.Connection:
    """Open a connection, create the employees table and optionally load the sample rows.

    Sample rows are only inserted into an empty table, so reopening a file database does not duplicate them.
    """
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    with conn:
        conn.execute(SCHEMA)
        if seed and conn.execute("SELECT 1 FROM employees LIMIT 1").fetchone() is None:
            conn.executemany(INSERT_EMPLOYEE, SAMPLE_EMPLOYEES)
            logger.info("Seeded %d sample employees into %s", len(SAMPLE_EMPLOYEES), path)
    return conn


def set_database(conn: Optional[sqlite3.Connection]) -> None:
    """Install `conn` as the shared connection, closing the one it replaces."""
    global _database
    if _database is not None and _database is not conn:
        _database.close()
    _database = conn


def get_database() -> sqlite3.Connection:
    if _database is None:
        raise RuntimeError("Employee database has not been initialised; call set_database() first.")
    return _database
