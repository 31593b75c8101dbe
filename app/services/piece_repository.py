"""Queries over the per-subject worksheet ("piece") tables."""

import logging

from app.core.database import Database
from app.core.validation import SUBJECTS
from app.core.validation import validate_subject
from app.models.piece_models import PieceImageUrls
from app.models.piece_models import PieceRow

logger = logging.getLogger(__name__)


def _piece_problems_query(subject: str, columns: str) -> str:
    # subject is whitelisted by validate_subject before reaching here
    return f"""
        SELECT {columns}
          FROM {subject}_piece p
          LEFT JOIN {subject}_piece_info i    ON p.piece_info_id = i.id
          LEFT JOIN {subject}_piece_problem pp ON p.id = pp.piece_id
          LEFT JOIN {subject}_problem jp      ON pp.problem_id = jp.id
         WHERE p.is_deleted = 0
           AND pp.is_deleted = 0
           AND p.id = %s
         ORDER BY pp.seq
    """


async def fetch_piece_rows(db: Database, subject: str, piece_id: int) -> list[PieceRow]:
    """Problem/solution image URL pairs of a worksheet, ordered by their sequence.

    Returns an empty list when the piece does not exist or has no live problems.
    """
    validate_subject(subject)
    rows = await db.fetch_all(
        _piece_problems_query(subject, "pp.seq, jp.problem_img_url, jp.solution_img_url"),
        (piece_id,),
    )
    logger.debug("Fetched %d rows for %s piece %s", len(rows), subject, piece_id)
    return [
        PieceRow(
            sequence=r["seq"] if r.get("seq") is not None else index + 1,
            problem_image_url=r.get("problem_img_url"),
            solution_image_url=r.get("solution_img_url"),
        )
        for index, r in enumerate(rows)
    ]


async def fetch_piece_image_urls(db: Database, subject: str, piece_id: int) -> PieceImageUrls:
    validate_subject(subject)
    rows = await db.fetch_all(
        _piece_problems_query(subject, "jp.problem_img_url, jp.solution_img_url"),
        (piece_id,),
    )
    return PieceImageUrls(
        problem_img_urls=[r["problem_img_url"] for r in rows if r.get("problem_img_url")],
        solution_img_urls=[r["solution_img_url"] for r in rows if r.get("solution_img_url")],
    )


async def fetch_user_pieces(db: Database, email: str) -> list[dict]:
    """All live worksheets of the university user behind *email*, across every subject."""
    user = await db.fetch_one(
        """
        SELECT hu.id
          FROM htht_university_user hu
          LEFT JOIN user u ON hu.user_id = u.student_id
         WHERE u.account_email = %s
        """,
        (email,),
    )
    if user is None:
        return []

    out: list[dict] = []
    for subject in SUBJECTS:
        rows = await db.fetch_all(
            f"""
            SELECT '{subject}' AS subject, p.id, i.title, DATE_FORMAT(p.created_at, '%%Y-%%m-%%d') AS created_at
              FROM {subject}_piece p
              LEFT JOIN {subject}_piece_info i ON p.piece_info_id = i.id
             WHERE p.is_deleted = 0 AND htht_university_user_id = %s
             ORDER BY p.created_at DESC
            """,
            (user["id"],),
        )
        out.extend(rows)
    return out
