from typing import Annotated, Any, Literal
from datetime import date, datetime, timezone
import logging
import sqlite3

from pydantic import Field

from utils import format_fixed, format_number, round_half_up  # type: ignore

logger = logging.getLogger(__name__)

QuarterlyRating = Literal["A+", "A", "B+", "B", "C"]
PerformanceScore = Annotated[float, Field(ge=1.0, le=5.0, description="パフォーマンススコア (1.0-5.0)")]

PROMOTION_MIN_SCORE = 4.0

TEAM_QUERY = """
    SELECT * FROM employees
    WHERE manager_id = ?
    ORDER BY level DESC, performance_score DESC
"""

STATS_QUERY = """
    SELECT
        department,
        COUNT(*) AS employee_count,
        AVG(performance_score) AS avg_performance,
        AVG(bonus) AS avg_bonus,
        MIN(performance_score) AS min_performance,
        MAX(performance_score) AS max_performance
    FROM employees
"""


def promotion_cutoff(today: date | None = None) -> date:
    """Latest hire date that counts as one full year of service.

    Defaults to the current UTC date. Feb 29 rolls forward to Mar 1 of the previous year,
    like SQLite's DATE('now', '-1 year').
    """
    today = today or datetime.now(timezone.utc).date()
    try:
        return today.replace(year=today.year - 1)
    except ValueError:
        return date(today.year - 1, 3, 1)


def _team_line(emp: sqlite3.Row) -> str:
    return f"  ├─ {emp['name']} | {emp['level']} | パフォーマンス: {format_number(emp['performance_score'])}"


def _employee_block(emp: sqlite3.Row) -> str:
    return (
        f"ID: {emp['id']}\n"
        f"氏名: {emp['name']}\n"
        f"部署: {emp['department']}\n"
        f"等級: {emp['level']}\n"
        f"パフォーマンス: {format_number(emp['performance_score'])}\n"
        f"評価: {emp['quarterly_rating']}\n"
        f"ボーナス: ¥{format_number(emp['bonus'])}\n"
        f"入社日: {emp['hire_date']}\n"
    )


async def query_employees(
    db: sqlite3.Connection,
    department: Annotated[str | None, Field(description="部署名")] = None,
    level: Annotated[str | None, Field(description="社員等級 (P4-P7, M1-M3)")] = None,
    min_performance: Annotated[float | None, Field(description="最低パフォーマンススコア")] = None,
) -> str:
    """Search employees by department, level and minimum score, best performers first."""
    query = "SELECT * FROM employees WHERE 1=1"
    params: list[Any] = []

    if department:
        query += " AND department = ?"
        params.append(department)
    if level:
        query += " AND level = ?"
        params.append(level)
    if min_performance:
        query += " AND performance_score >= ?"
        params.append(min_performance)

    query += " ORDER BY performance_score DESC"
    employees = db.execute(query, params).fetchall()
    logger.info(
        "query_employees department=%s level=%s min_performance=%s -> %d rows",
        department, level, min_performance, len(employees),
    )

    body = "\n".join(_employee_block(emp) for emp in employees)
    return f"{len(employees)}人の社員が検索されました:\n\n{body}"


async def add_employee(
    db: sqlite3.Connection,
    name: Annotated[str, Field(description="社員名")],
    department: Annotated[str, Field(description="部署")],
    level: Annotated[str, Field(description="等級")],
    performance_score: PerformanceScore,
    quarterly_rating: Annotated[QuarterlyRating, Field(description="四半期評価 (A+, A, B+, B, C)")],
    bonus: Annotated[float, Field(description="ボーナス")],
    hire_date: Annotated[str, Field(pattern=r"^\d{4}-\d{2}-\d{2}$", description="入社日 (YYYY-MM-DD)")],
    manager_id: Annotated[int | None, Field(description="上司ID (任意)")] = None,
) -> str:
    """Insert a new employee and report the id it was given."""
    with db:
        cursor = db.execute(
            """
            INSERT INTO employees (name, department, level, performance_score, quarterly_rating, bonus, hire_date, manager_id)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (name, department, level, performance_score, quarterly_rating, bonus, hire_date, manager_id or None),
        )
    logger.info("Added employee id=%s name=%s department=%s", cursor.lastrowid, name, department)
    return f"社員 {name} を正常に追加しました。ID: {cursor.lastrowid}"


async def department_stats(
    db: sqlite3.Connection,
    department: Annotated[str | None, Field(description="部署名（任意、未指定の場合は全部署を統計）")] = None,
) -> str:
    """Headcount, average score and bonus, and score range for one department or all of them."""
    if department:
        stats = db.execute(STATS_QUERY + " WHERE department = ? GROUP BY department", (department,)).fetchone()
        logger.info("department_stats department=%s found=%s", department, stats is not None)
        if stats is None:
            return f"部署が見つかりません: {department}"
        return (
            f"{stats['department']}部署統計:\n\n"
            f"社員数: {stats['employee_count']}人\n"
            f"平均パフォーマンス: {format_fixed(stats['avg_performance'])}\n"
            f"平均ボーナス: ¥{round_half_up(stats['avg_bonus'])}\n"
            f"パフォーマンス範囲: {format_number(stats['min_performance'])} - {format_number(stats['max_performance'])}"
        )

    all_stats = db.execute(STATS_QUERY + " GROUP BY department ORDER BY avg_performance DESC").fetchall()
    logger.info("department_stats for all departments -> %d departments", len(all_stats))
    blocks = [
        f"【{stats['department']}】\n"
        f"人数: {stats['employee_count']}人 | "
        f"平均パフォーマンス: {format_fixed(stats['avg_performance'])} | "
        f"平均ボーナス: ¥{round_half_up(stats['avg_bonus'])}"
        for stats in all_stats
    ]
    return "各部署統計:\n\n" + "\n\n".join(blocks)


async def promotion_candidates(
    db: sqlite3.Connection,
    department: Annotated[str | None, Field(description="部署名（任意）")] = None,
) -> str:
    """Employees scoring at least 4.0 with a year or more of service."""
    query = """
        SELECT * FROM employees
        WHERE performance_score >= ?
        AND DATE(hire_date) <= ?
    """
    params: list[Any] = [PROMOTION_MIN_SCORE, promotion_cutoff().isoformat()]

    if department:
        query += " AND department = ?"
        params.append(department)
        candidates = db.execute(query, params).fetchall()
        logger.info("promotion_candidates department=%s -> %d candidates", department, len(candidates))
        lines = [
            f"{emp['name']} | {emp['level']} | パフォーマンス: {format_number(emp['performance_score'])} | 入社日: {emp['hire_date']}"
            for emp in candidates
        ]
        return f"{department}部署の昇進候補者 ({len(candidates)}人):\n\n" + "\n".join(lines)

    query += " ORDER BY performance_score DESC"
    candidates = db.execute(query, params).fetchall()
    logger.info("promotion_candidates company-wide -> %d candidates", len(candidates))
    lines = [
        f"{emp['name']} | {emp['department']} | {emp['level']} | パフォーマンス: {format_number(emp['performance_score'])}"
        for emp in candidates
    ]
    return f"全社昇進候補者 ({len(candidates)}人):\n\n" + "\n".join(lines)


async def update_performance(
    db: sqlite3.Connection,
    employee_id: Annotated[int, Field(description="社員ID")],
    performance_score: Annotated[float, Field(ge=1.0, le=5.0, description="新しいパフォーマンススコア")] | None = None,
    quarterly_rating: Annotated[QuarterlyRating | None, Field(description="新しい四半期評価")] = None,
    bonus: Annotated[float | None, Field(description="新しいボーナス")] = None,
) -> str:
    """Update score, rating and/or bonus of one employee. Only the supplied fields change."""
    updates: list[str] = []
    params: list[Any] = []

    if performance_score is not None:
        updates.append("performance_score = ?")
        params.append(performance_score)
    if quarterly_rating:
        updates.append("quarterly_rating = ?")
        params.append(quarterly_rating)
    if bonus is not None:
        updates.append("bonus = ?")
        params.append(bonus)

    if not updates:
        return "更新するフィールドが指定されていません"

    params.append(employee_id)
    with db:
        cursor = db.execute(f"UPDATE employees SET {', '.join(updates)} WHERE id = ?", params)

    if cursor.rowcount == 0:
        return f"ID {employee_id} の社員が見つかりません"

    employee = db.execute("SELECT name FROM employees WHERE id = ?", (employee_id,)).fetchone()
    logger.info("Updated employee id=%s fields=%s", employee_id, updates)
    return f"社員 {employee['name']} のパフォーマンス情報を正常に更新しました"


async def get_team_hierarchy(
    db: sqlite3.Connection,
    manager_id: Annotated[
        int | None, Field(description="マネージャーID（任意、未指定の場合は全てのトップマネージャーを表示）")
    ] = None,
) -> str:
    """Direct reports of one manager, or every top-level manager with their direct reports."""
    if manager_id:
        manager = db.execute("SELECT name, level FROM employees WHERE id = ?", (manager_id,)).fetchone()
        logger.info("get_team_hierarchy manager_id=%s found=%s", manager_id, manager is not None)
        if manager is None:
            return f"ID {manager_id} のマネージャーが見つかりません"

        team = db.execute(TEAM_QUERY, (manager_id,)).fetchall()
        lines = "\n".join(_team_line(emp) for emp in team)
        return f"{manager['name']} ({manager['level']}) のチーム ({len(team)}人):\n\n{lines}"

    top_managers = db.execute(
        "SELECT * FROM employees WHERE manager_id IS NULL ORDER BY level DESC"
    ).fetchall()

    logger.info("get_team_hierarchy for %d top-level managers", len(top_managers))
    hierarchy = []
    for manager in top_managers:
        team = db.execute(TEAM_QUERY, (manager["id"],)).fetchall()
        lines = "\n".join(_team_line(emp) for emp in team)
        hierarchy.append(f"{manager['name']} ({manager['level']}) - {manager['department']}\n{lines}")

    return "チーム階層構造:\n\n" + "\n\n".join(hierarchy)


def get_tools() -> dict[str, Any]:
    return {
        "query_employees": {
            "func": query_employees,
            "title": "Query employees",
            "description": "社員情報を検索、部署・等級・パフォーマンスでフィルタ可能",
        },
        "add_employee": {
            "func": add_employee,
            "title": "Add employee",
            "description": "新規社員追加",
        },
        "department_stats": {
            "func": department_stats,
            "title": "Department statistics",
            "description": "部署統計情報取得",
        },
        "promotion_candidates": {
            "func": promotion_candidates,
            "title": "Promotion candidates",
            "description": "昇進候補者取得（パフォーマンス4.0以上かつ現在の等級で1年以上勤務）",
        },
        "update_performance": {
            "func": update_performance,
            "title": "Update performance",
            "description": "社員パフォーマンス更新",
        },
        "get_team_hierarchy": {
            "func": get_team_hierarchy,
            "title": "Team hierarchy",
            "description": "チーム階層構造取得",
        },
    }
