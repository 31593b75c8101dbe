"""Reporting queries over the daily problem-history statistics schema."""

import logging
import math
from typing import Any

from app.core.database import Database

logger = logging.getLogger(__name__)

HISTORY_TABLE = "pulley_statistic.htht_daily_piece_problem_history"

_LECTURE_JOIN = """
    INNER JOIN pulley.lecture_student_mapping m ON h.htht_university_user_id = m.htht_university_user_id
    INNER JOIN pulley.lecture l ON m.lecture_id = l.id
"""

_METRIC_COLUMNS = """
    h.total_questions,
    h.original_questions,
    h.similar_questions,
    h.total_solved,
    h.original_solved,
    h.similar_solved,
    h.original_correct,
    h.similar_correct,
    h.total_correct,
    h.total_accuracy,
    h.original_accuracy,
    h.similar_accuracy
"""

_AGGREGATE_COLUMNS = """
    SUM(h.total_questions) AS total_questions,
    SUM(h.total_solved) AS total_solved,
    SUM(h.total_correct) AS total_correct,
    AVG(h.total_accuracy) AS avg_accuracy,
    AVG(h.original_accuracy) AS avg_original_accuracy,
    AVG(h.similar_accuracy) AS avg_similar_accuracy
"""


def _num(value: Any) -> int | float:
    """SQL aggregates come back as Decimal or NULL."""
    if value is None:
        return 0
    number = float(value)
    return int(number) if number.is_integer() else number


def _placeholders(values: list) -> str:
    return ",".join(["%s"] * len(values))


def pagination(page: int, limit: int, total: int) -> dict[str, int]:
    return {
        "currentPage": page,
        "totalPages": math.ceil(total / limit) if limit > 0 else 0,
        "totalItems": total,
        "itemsPerPage": limit,
    }


async def list_lectures(db: Database, university_id: str, subject_group: str) -> list[dict]:
    return await db.fetch_all(
        """
        SELECT id, htht_university_id, htht_university_user_id, subject_group, name
          FROM pulley.lecture
         WHERE htht_university_id = %s AND subject_group = %s AND is_deleted = 0
         ORDER BY id DESC
        """,
        (university_id, subject_group),
    )


async def university_stats(db: Database, university_id: str, start_date: str, end_date: str) -> dict[str, float]:
    row = await db.fetch_one(
        f"""
        SELECT {_AGGREGATE_COLUMNS}
          FROM {HISTORY_TABLE} h
         WHERE h.university_id = %s AND h.study_date BETWEEN %s AND %s
        """,
        (university_id, start_date, end_date),
    ) or {}

    total_questions = _num(row.get("total_questions"))
    total_solved = _num(row.get("total_solved"))
    return {
        "totalProblems": total_questions,
        "totalSolved": total_solved,
        "totalCorrect": _num(row.get("total_correct")),
        "averageRate": (total_solved / total_questions) * 100 if total_questions > 0 else 0,
        "originalRate": _num(row.get("avg_original_accuracy")),
        "similarRate": _num(row.get("avg_similar_accuracy")),
    }


async def lecture_stats(db: Database, university_id: str, lecture_ids: list[int], start_date: str, end_date: str) -> dict[str, float]:
    row = await db.fetch_one(
        f"""
        SELECT {_AGGREGATE_COLUMNS}
          FROM {HISTORY_TABLE} h
          {_LECTURE_JOIN}
         WHERE h.university_id = %s AND h.study_date BETWEEN %s AND %s
           AND m.lecture_id IN ({_placeholders(lecture_ids)}) AND m.is_deleted = 0
        """,
        (university_id, start_date, end_date, *lecture_ids),
    ) or {}

    return {
        "totalProblems": _num(row.get("total_questions")),
        "totalSolved": _num(row.get("total_solved")),
        "totalCorrect": _num(row.get("total_correct")),
        "averageRate": _num(row.get("avg_accuracy")),
        "originalRate": _num(row.get("avg_original_accuracy")),
        "similarRate": _num(row.get("avg_similar_accuracy")),
    }


async def daily_problem_history(
    db: Database, university_id: int, start_date: str, end_date: str, page: int, limit: int
) -> dict[str, Any]:
    offset = (page - 1) * limit
    logger.info(
        "Daily problem history query: university=%s %s..%s page=%d limit=%d offset=%d",
        university_id,
        start_date,
        end_date,
        page,
        limit,
        offset,
    )
    history = await db.fetch_all(
        f"""
        SELECT h.study_date, h.university_id, h.school_name, h.account, h.student_name, h.student_no,
               h.study_type, h.piece_name, h.subject_group,
               {_METRIC_COLUMNS}
          FROM {HISTORY_TABLE} h
         WHERE h.university_id = %s AND h.study_date BETWEEN %s AND %s
         ORDER BY h.study_date DESC
         LIMIT %s OFFSET %s
        """,
        (university_id, start_date, end_date, limit, offset),
    )
    count = await db.fetch_one(
        f"""
        SELECT COUNT(*) AS total
          FROM {HISTORY_TABLE} h
         WHERE h.university_id = %s AND h.study_date BETWEEN %s AND %s
        """,
        (university_id, start_date, end_date),
    ) or {}
    total = int(count.get("total") or 0)
    return {"history": history, "pagination": pagination(page, limit, total)}


async def lecture_history(
    db: Database,
    university_id: int,
    lecture_ids: list[int],
    start_date: str,
    end_date: str,
    page: int,
    limit: int,
) -> dict[str, Any]:
    offset = (page - 1) * limit
    logger.info(
        "Lecture history query: university=%s lectures=%s %s..%s page=%d limit=%d",
        university_id,
        lecture_ids,
        start_date,
        end_date,
        page,
        limit,
    )
    history = await db.fetch_all(
        f"""
        SELECT h.study_date, h.university_id, h.school_name, h.account, h.student_name, h.student_no,
               h.study_type, h.piece_name, h.subject_group, l.name AS lecture_name,
               {_METRIC_COLUMNS}
          FROM {HISTORY_TABLE} h
          {_LECTURE_JOIN}
         WHERE h.university_id = %s AND h.study_date BETWEEN %s AND %s
           AND m.lecture_id IN ({_placeholders(lecture_ids)}) AND m.is_deleted = 0
         ORDER BY h.study_date DESC, l.name, h.account
         LIMIT %s OFFSET %s
        """,
        (university_id, start_date, end_date, *lecture_ids, limit, offset),
    )
    count = await db.fetch_one(
        f"""
        SELECT COUNT(*) AS total
          FROM {HISTORY_TABLE} h
          INNER JOIN pulley.lecture_student_mapping m ON h.htht_university_user_id = m.htht_university_user_id
         WHERE h.university_id = %s AND h.study_date BETWEEN %s AND %s
           AND m.lecture_id IN ({_placeholders(lecture_ids)}) AND m.is_deleted = 0
        """,
        (university_id, start_date, end_date, *lecture_ids),
    ) or {}
    total = int(count.get("total") or 0)
    return {"history": history, "pagination": pagination(page, limit, total)}


async def download_rows(db: Database, university_id: int, start_date: str, end_date: str) -> list[dict]:
    return await db.fetch_all(
        f"""
        SELECT h.study_date, h.university_id, u.name AS school_name, uu.account, uu.name AS student_name,
               uu.student_no, h.study_type, h.piece_name, h.subject_group,
               {_METRIC_COLUMNS}
          FROM {HISTORY_TABLE} h
          LEFT JOIN pulley.htht_university u ON h.university_id = u.id
          LEFT JOIN pulley.htht_university_user uu ON h.htht_university_user_id = uu.id
         WHERE h.university_id = %s AND h.study_date BETWEEN %s AND %s
         ORDER BY h.study_date DESC, h.htht_university_user_id
        """,
        (university_id, start_date, end_date),
    )


async def lecture_download_rows(
    db: Database, university_id: int, lecture_ids: list[int], start_date: str, end_date: str
) -> list[dict]:
    return await db.fetch_all(
        f"""
        SELECT h.study_date, h.university_id, u.name AS school_name, uu.account, uu.name AS student_name,
               uu.student_no, h.study_type, h.piece_name, h.subject_group, l.name AS lecture_name,
               {_METRIC_COLUMNS}
          FROM {HISTORY_TABLE} h
          LEFT JOIN pulley.htht_university u ON h.university_id = u.id
          LEFT JOIN pulley.htht_university_user uu ON h.htht_university_user_id = uu.id
          {_LECTURE_JOIN}
         WHERE h.university_id = %s AND h.study_date BETWEEN %s AND %s
           AND m.lecture_id IN ({_placeholders(lecture_ids)}) AND m.is_deleted = 0
         ORDER BY h.study_date DESC, h.htht_university_user_id, l.name
        """,
        (university_id, start_date, end_date, *lecture_ids),
    )
