"""
채용공고 목록 조회 서비스
- 키워드/지역/직무분야/채용구분/학력/고용형태 필터 (모두 AND)
- offset/limit 페이지네이션
- UI 필터용 facet 값 목록
"""
import math
from datetime import timedelta
from typing import Any, List, Tuple

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from recruitment.config import settings
from recruitment.models.recruitment_posting import RecruitmentPosting, token_pattern
from recruitment.schemas.recruitment import (
    RecruitmentFilterOptionsResult,
    RecruitmentListFilters,
    RecruitmentListResult,
    RecruitmentPostingResponse,
)
from recruitment.utils.cache import cache_manager
from recruitment.utils.logger import app_logger
from recruitment.utils.text_utils import sort_unique, split_career_type

DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 50
FILTER_OPTIONS_CACHE = "recruitment_filter_options"


def clamp_pagination(offset: Any, limit: Any, default_limit: int = DEFAULT_PAGE_LIMIT) -> Tuple[int, int]:
    """offset은 0 이상, limit은 1~50 범위로 맞춥니다. 숫자가 아니면 기본값."""
    def _to_number(value: Any):
        if isinstance(value, bool):
            return None
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
        return number if math.isfinite(number) else None

    safe_offset = _to_number(offset)
    safe_offset = int(safe_offset) if safe_offset is not None and safe_offset > 0 else 0

    safe_limit = _to_number(limit)
    if safe_limit is None or safe_limit < 1:
        safe_limit = default_limit
    return safe_offset, min(int(safe_limit), MAX_PAGE_LIMIT)


def build_posting_filters(filters: RecruitmentListFilters) -> List[Any]:
    """필터 조건을 SQLAlchemy 조건 리스트로 변환합니다. 활성 공고 조건은 항상 포함됩니다."""
    conditions = [RecruitmentPosting.is_active.is_(True)]

    if not filters.include_closed:
        conditions.append(RecruitmentPosting.is_ongoing.is_(True))

    # 검색어는 공백 단위로 나누고, 각 단어가 제목/기관명/통합 텍스트 중 하나에 포함되어야 함
    if filters.q:
        for term in filters.q.split():
            conditions.append(
                or_(
                    RecruitmentPosting.title.icontains(term, autoescape=True),
                    RecruitmentPosting.institution_name.icontains(term, autoescape=True),
                    RecruitmentPosting.search_text.icontains(term, autoescape=True),
                )
            )

    list_filters = (
        (RecruitmentPosting.region_names, filters.regions),
        (RecruitmentPosting.field_names, filters.job_fields),
        (RecruitmentPosting.hire_type_names, filters.hire_types),
        (RecruitmentPosting.education_condition_names, filters.education_levels),
    )
    for column, values in list_filters:
        if values:
            conditions.append(
                or_(*[column.contains(token_pattern(value), autoescape=True) for value in values])
            )

    if filters.career_types:
        conditions.append(
            or_(*[
                RecruitmentPosting.recruit_type_name.icontains(career_type, autoescape=True)
                for career_type in filters.career_types
            ])
        )

    return conditions


def list_postings(
    db: Session,
    filters: RecruitmentListFilters,
    offset: Any = 0,
    limit: Any = DEFAULT_PAGE_LIMIT,
) -> RecruitmentListResult:
    safe_offset, safe_limit = clamp_pagination(offset, limit)
    query = db.query(RecruitmentPosting).filter(and_(*build_posting_filters(filters)))

    total = query.count()
    postings = (
        query.order_by(
            RecruitmentPosting.updated_at.desc(),
            RecruitmentPosting.closed_on.asc().nullslast(),
            RecruitmentPosting.posting_id.desc(),
        )
        .offset(safe_offset)
        .limit(safe_limit)
        .all()
    )

    items = [RecruitmentPostingResponse.model_validate(posting) for posting in postings]
    next_offset = safe_offset + len(items)
    app_logger.info(f"채용공고 목록 조회 완료: {len(items)}건 / 전체 {total}건 (offset={safe_offset})")
    return RecruitmentListResult(
        items=items,
        total=total,
        next_offset=next_offset,
        has_more=next_offset < total,
    )


def get_filter_options(db: Session, include_closed: bool = False) -> RecruitmentFilterOptionsResult:
    """
    활성 공고 전체를 스캔해 facet 값 목록을 만듭니다.
    결과는 설정된 시간 동안 캐시되며 동기화가 끝나면 비워집니다.
    """
    cache_key = cache_manager.generate_cache_key(FILTER_OPTIONS_CACHE, include_closed=include_closed)
    ttl = timedelta(seconds=settings.RECRUITMENT_FILTER_OPTIONS_CACHE_SECONDS)
    cached = cache_manager.get_cached_data(FILTER_OPTIONS_CACHE, cache_key, ttl)
    if cached is not None:
        return cached

    query = db.query(
        RecruitmentPosting.region_names,
        RecruitmentPosting.field_names,
        RecruitmentPosting.recruit_type_name,
        RecruitmentPosting.education_condition_names,
        RecruitmentPosting.hire_type_names,
    ).filter(RecruitmentPosting.is_active.is_(True))
    if not include_closed:
        query = query.filter(RecruitmentPosting.is_ongoing.is_(True))

    regions, fields, career_types, education_levels, hire_types = set(), set(), set(), set(), set()
    for region_names, field_names, recruit_type_name, education_names, hire_type_names in query.all():
        regions.update(region_names)
        fields.update(field_names)
        career_types.update(split_career_type(recruit_type_name))
        education_levels.update(education_names)
        hire_types.update(hire_type_names)

    result = RecruitmentFilterOptionsResult(
        regions=sort_unique(regions),
        job_fields=sort_unique(fields),
        career_types=sort_unique(career_types),
        education_levels=sort_unique(education_levels),
        hire_types=sort_unique(hire_types),
    )
    cache_manager.set_cached_data(FILTER_OPTIONS_CACHE, cache_key, result, ttl)
    app_logger.info(f"필터 옵션 조회 완료: 지역 {len(result.regions)}, 직무분야 {len(result.job_fields)}")
    return result


def invalidate_filter_options_cache() -> None:
    cache_manager.clear_cache(FILTER_OPTIONS_CACHE)
