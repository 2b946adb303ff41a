from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List, Optional

from recruitment.database import get_db
from recruitment.schemas.recruitment import (
    RecruitmentFilterOptionsResult,
    RecruitmentListFilters,
    RecruitmentListResult,
    RecruitmentMatchRequest,
    RecruitmentMatchResult,
    RecruitmentSyncRequest,
)
from recruitment.schemas.resume import CandidateProfile, CoverLetterInput
from recruitment.services.recruitment_match import RecruitmentMatchService
from recruitment.services.recruitment_query import get_filter_options, list_postings
from recruitment.services.recruitment_sync import RecruitmentSyncService
from recruitment.utils.dependencies import find_access_code, get_match_service, get_sync_service
from recruitment.utils.exceptions import BadRequestException, InternalServerException, NotFoundException
from recruitment.utils.logger import app_logger
from recruitment.utils.text_utils import split_csv

router = APIRouter(prefix="/recruitments", tags=["recruitments"])


def _flatten(values: Optional[List[str]]) -> List[str]:
    # ?regions=서울&regions=경기 와 ?regions=서울,경기 모두 허용
    result: List[str] = []
    for value in values or []:
        result.extend(split_csv(value))
    return result


@router.get(
    "",
    response_model=RecruitmentListResult,
    summary="채용공고 목록 조회 (필터/페이징 지원)",
    description="""
    동기화된 채용공고를 조건으로 필터링하여 조회합니다.\n
    - `q`: 공백으로 구분된 검색어 (모든 단어 포함)\n
    - `regions`, `fields`, `hireTypes`, `educationLevels`: 하나라도 일치하면 포함\n
    - `careerTypes`: 채용구분에 하나라도 포함되면 포함\n
    - `includeClosed`: 마감 공고 포함 여부 (기본 false)\n
    - `limit` 최대 50, 기본 10
    """
)
def read_recruitments(
    db: Session = Depends(get_db),
    q: Optional[str] = Query(None, description="검색어"),
    regions: Optional[List[str]] = Query(None, description="근무지역"),
    fields: Optional[List[str]] = Query(None, description="직무분야"),
    career_types: Optional[List[str]] = Query(None, alias="careerTypes", description="채용구분 (신입/경력)"),
    education_levels: Optional[List[str]] = Query(None, alias="educationLevels", description="학력조건"),
    hire_types: Optional[List[str]] = Query(None, alias="hireTypes", description="고용형태"),
    include_closed: bool = Query(False, alias="includeClosed", description="마감 공고 포함"),
    offset: int = Query(0, description="시작 위치"),
    limit: int = Query(10, description="최대 반환 개수 (최대 50)"),
):
    filters = RecruitmentListFilters(
        q=q,
        regions=_flatten(regions),
        job_fields=_flatten(fields),
        career_types=_flatten(career_types),
        education_levels=_flatten(education_levels),
        hire_types=_flatten(hire_types),
        include_closed=include_closed,
    )
    try:
        return list_postings(db, filters, offset, limit)
    except SQLAlchemyError as e:
        app_logger.error(f"채용공고 목록 조회 실패: {str(e)}")
        raise InternalServerException("채용공고 조회 중 오류가 발생했습니다.")


@router.get(
    "/filters",
    response_model=RecruitmentFilterOptionsResult,
    summary="채용공고 필터 옵션 조회",
    description="활성 공고의 지역/직무분야/채용구분/학력/고용형태 값 목록을 정렬하여 반환합니다."
)
def read_filter_options(
    db: Session = Depends(get_db),
    include_closed: bool = Query(False, alias="includeClosed"),
):
    try:
        return get_filter_options(db, include_closed)
    except SQLAlchemyError as e:
        app_logger.error(f"필터 옵션 조회 실패: {str(e)}")
        raise InternalServerException("필터 옵션 조회 중 오류가 발생했습니다.")


@router.post(
    "/sync",
    summary="채용공고 동기화 실행",
    description="외부 채용정보 API 전체를 동기화합니다. `force=false`이면 최근 동기화 후 주기 내에는 건너뜁니다."
)
async def sync_recruitments(
    request: Optional[RecruitmentSyncRequest] = None,
    service: RecruitmentSyncService = Depends(get_sync_service),
):
    force = request.force if request else True
    result = await service.ensure_synced(force=force)
    if result is None:
        return {"skipped": True, "message": "최근에 동기화되어 건너뛰었습니다."}
    return result.model_dump(mode="json")


@router.post(
    "/match",
    response_model=RecruitmentMatchResult,
    summary="이력서 기반 채용공고 추천",
    description="""
    인증번호로 저장된 이력서/자기소개서를 불러와 공고별 적합도를 계산합니다.\n
    - `limit` 기본값: 첫 페이지 10, 이후 5 (최대 20)
    """
)
async def match_recruitments(
    request: RecruitmentMatchRequest,
    db: Session = Depends(get_db),
    service: RecruitmentMatchService = Depends(get_match_service),
):
    record = find_access_code(db, request.code)
    if not record:
        raise NotFoundException("인증번호", "인증번호가 유효하지 않습니다.")

    payload = record.payload or {}
    resume = payload.get("resume")
    if not resume:
        raise BadRequestException("이력서 데이터가 없습니다.", error_code="RESUME_MISSING")

    profile = CandidateProfile.model_validate(resume)
    cover_letter_payload = payload.get("coverLetter")
    cover_letter = CoverLetterInput.model_validate(cover_letter_payload) if isinstance(cover_letter_payload, dict) else None

    offset = request.offset or 0
    limit = request.limit or (10 if offset == 0 else 5)
    return await service.match_recruitments(profile, cover_letter, offset, limit)
