"""Reporting endpoints for the dashboard (lectures, statistics, history, downloads)."""

import logging

from fastapi import APIRouter
from fastapi import Depends
from fastapi import Query

from app.core.database import Database
from app.core.database import get_database
from app.core.exceptions import ValidationError
from app.core.validation import DEFAULT_PAGE
from app.core.validation import DEFAULT_PAGE_SIZE
from app.core.validation import parse_id_list
from app.core.validation import parse_int
from app.services import statistics_service

from .errors import handle_route_errors

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/data", tags=["Data"])

MISSING_RANGE = "대학교, 시작일, 종료일을 모두 선택해주세요."
MISSING_ALL = "모든 필드를 선택해주세요."
INVALID_LECTURES = "유효한 강의를 선택해주세요."
INVALID_PARAMS = "유효하지 않은 파라미터입니다."


def _require(message: str, *values: str | None) -> None:
    if not all(values):
        raise ValidationError(message)


def _lecture_ids(raw: str) -> list[int]:
    ids = parse_id_list(raw)
    if not ids:
        raise ValidationError(INVALID_LECTURES)
    return ids


def _paging(university_id: str, page: str, limit: str) -> tuple[int, int, int]:
    values = (parse_int(university_id), parse_int(page), parse_int(limit))
    if any(v is None for v in values):
        raise ValidationError(INVALID_PARAMS)
    uid, page_num, limit_num = values
    if page_num < 1 or limit_num < 1:
        raise ValidationError(INVALID_PARAMS)
    return uid, page_num, limit_num


@router.get("/lectures")
@handle_route_errors("강의 목록을 가져오는 중 오류가 발생했습니다.")
async def get_lectures(
    university_id: str | None = Query(default=None, alias="universityId"),
    subject_group: str | None = Query(default=None, alias="subjectGroup"),
    db: Database = Depends(get_database),
) -> dict:
    _require("대학교와 과목군을 선택해주세요.", university_id, subject_group)
    return {"success": True, "data": await statistics_service.list_lectures(db, university_id, subject_group)}


@router.get("/stats")
@handle_route_errors("통계를 가져오는 중 오류가 발생했습니다.")
async def get_stats(
    university_id: str | None = Query(default=None, alias="universityId"),
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    db: Database = Depends(get_database),
) -> dict:
    _require(MISSING_RANGE, university_id, start_date, end_date)
    return {"success": True, "data": await statistics_service.university_stats(db, university_id, start_date, end_date)}


@router.get("/lecture-stats")
@handle_route_errors("통계 데이터를 가져오는 중 오류가 발생했습니다.")
async def get_lecture_stats(
    university_id: str | None = Query(default=None, alias="universityId"),
    lecture_ids: str | None = Query(default=None, alias="lectureIds"),
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    db: Database = Depends(get_database),
) -> dict:
    _require(MISSING_ALL, university_id, lecture_ids, start_date, end_date)
    ids = _lecture_ids(lecture_ids)
    data = await statistics_service.lecture_stats(db, university_id, ids, start_date, end_date)
    return {"success": True, "data": data}


@router.get("/daily-problem-history")
@handle_route_errors("일일 문제 이력을 가져오는 중 오류가 발생했습니다.")
async def get_daily_problem_history(
    university_id: str | None = Query(default=None, alias="universityId"),
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    page: str = Query(default=str(DEFAULT_PAGE)),
    limit: str = Query(default=str(DEFAULT_PAGE_SIZE)),
    db: Database = Depends(get_database),
) -> dict:
    _require(MISSING_RANGE, university_id, start_date, end_date)
    uid, page_num, limit_num = _paging(university_id, page, limit)
    data = await statistics_service.daily_problem_history(db, uid, start_date, end_date, page_num, limit_num)
    return {"success": True, "data": data}


@router.get("/lecture-history")
@handle_route_errors("강의별 학습 이력을 가져오는 중 오류가 발생했습니다.")
async def get_lecture_history(
    university_id: str | None = Query(default=None, alias="universityId"),
    lecture_ids: str | None = Query(default=None, alias="lectureIds"),
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    page: str = Query(default=str(DEFAULT_PAGE)),
    limit: str = Query(default=str(DEFAULT_PAGE_SIZE)),
    db: Database = Depends(get_database),
) -> dict:
    _require(MISSING_ALL, university_id, lecture_ids, start_date, end_date)
    uid, page_num, limit_num = _paging(university_id, page, limit)
    ids = _lecture_ids(lecture_ids)
    data = await statistics_service.lecture_history(db, uid, ids, start_date, end_date, page_num, limit_num)
    return {"success": True, "data": data}


@router.get("/lecture-download")
@handle_route_errors("강의 다운로드 데이터를 가져오는 중 오류가 발생했습니다.")
async def get_lecture_download(
    university_id: str | None = Query(default=None, alias="universityId"),
    lecture_ids: str | None = Query(default=None, alias="lectureIds"),
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    db: Database = Depends(get_database),
) -> dict:
    _require(MISSING_ALL, university_id, lecture_ids, start_date, end_date)
    ids = _lecture_ids(lecture_ids)
    uid = parse_int(university_id)
    if uid is None:
        raise ValidationError(INVALID_PARAMS)
    data = await statistics_service.lecture_download_rows(db, uid, ids, start_date, end_date)
    return {"success": True, "data": data}


@router.get("/download")
@handle_route_errors("다운로드 데이터를 가져오는 중 오류가 발생했습니다.")
async def get_download(
    university_id: str | None = Query(default=None, alias="universityId"),
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    db: Database = Depends(get_database),
) -> dict:
    _require(MISSING_RANGE, university_id, start_date, end_date)
    uid = parse_int(university_id)
    if uid is None:
        raise ValidationError(INVALID_PARAMS)
    data = await statistics_service.download_rows(db, uid, start_date, end_date)
    return {"success": True, "data": data}
