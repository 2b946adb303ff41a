"""
채용공고 추천(매칭) 서비스

1. 외부 API에서 최신 공고 풀을 가져온다 (저장소가 아닌 실시간 목록)
2. 학력/경력/지역 조건으로 지원 불가 공고를 제외한다
3. 지원자 요약을 만들어 요청 페이지를 채울 만큼만 묶음 단위로 채점한다
4. 점수를 받은 공고만 점수 내림차순으로 정렬해 페이지를 자르고 상세 정보를 붙인다
"""
import asyncio
from typing import Any, Dict, List, Optional, Tuple

from recruitment.config import settings
from recruitment.schemas.recruitment import RecruitmentItem, RecruitmentMatchItem, RecruitmentMatchResult
from recruitment.schemas.resume import CandidateProfile, CoverLetterInput
from recruitment.services.recruitment_query import clamp_pagination
from recruitment.services.recruitment_source import RecruitmentSourceClient
from recruitment.services.relevance_scorer import RelevanceScorer, ScoreResult
from recruitment.utils.exceptions import DetailEnrichmentFailure
from recruitment.utils.logger import match_logger
from recruitment.utils.text_utils import truncate_text

REGION_KEYWORDS = [
    "서울", "경기", "인천", "부산", "대구", "광주", "대전", "울산", "세종",
    "강원", "충북", "충남", "전북", "전남", "경북", "경남", "제주", "전국",
]

NO_EDUCATION_REQUIREMENT = "학력무관"
DEGREE_KEYWORDS = ("대졸", "대학", "학사", "석사", "박사")
EDUCATION_STATUS_KEYWORDS = ("졸업", "재학", "수료")

MIN_POOL_SIZE = 50
MAX_POOL_SIZE = 500
PROFILE_SUMMARY_LIMIT = 2000


# === [1] 지원 자격 필터 (신호가 없으면 통과) ===

def extract_region(address: str) -> str:
    for region in REGION_KEYWORDS:
        if region in address:
            return region
    return ""


def matches_education(item: RecruitmentItem, profile: CandidateProfile) -> bool:
    condition = item.education_condition_names_raw
    if not condition or NO_EDUCATION_REQUIREMENT in condition:
        return True

    if not any(keyword in condition for keyword in DEGREE_KEYWORDS):
        return True

    return any(
        any(keyword in entry.graduation_status for keyword in EDUCATION_STATUS_KEYWORDS)
        for entry in profile.education
    )


def matches_career(item: RecruitmentItem, profile: CandidateProfile) -> bool:
    recruit_type = item.recruit_type_name
    has_experience = len(profile.work_experience) > 0

    if not recruit_type:
        return True
    if "신입" in recruit_type and "경력" in recruit_type:
        return True
    if "경력" in recruit_type:
        return has_experience
    if "신입" in recruit_type:
        return not has_experience
    return True


def matches_region(item: RecruitmentItem, profile: CandidateProfile) -> bool:
    region = extract_region(profile.address)
    posting_region = item.region_names_raw
    if not region or not posting_region:
        return True
    if "전국" in posting_region:
        return True
    return region in posting_region


def is_eligible(item: RecruitmentItem, profile: CandidateProfile) -> bool:
    return (
        matches_education(item, profile)
        and matches_career(item, profile)
        and matches_region(item, profile)
    )


# === [2] 지원자 요약 ===

def build_profile_summary(profile: CandidateProfile, cover_letter: Optional[CoverLetterInput] = None) -> str:
    education = "; ".join(
        f"{entry.school_name} {entry.major} {entry.graduation_status}" for entry in profile.education
    )
    work = "; ".join(f"{entry.company_name} {entry.main_task}" for entry in profile.work_experience)
    competencies = "; ".join(entry.full_description for entry in profile.core_competencies)
    certifications = "; ".join(
        f"{entry.certification_name} {entry.institution}" for entry in profile.certifications
    )
    cover = " ".join(cover_letter.sections()) if cover_letter else ""

    lines = [
        f"희망 직무: {profile.desired_job}",
        f"학력: {education}",
        f"경력: {work}",
        f"핵심 역량: {competencies}",
        f"자격증: {certifications}",
    ]
    if cover:
        lines.append(f"자기소개서 요약: {cover}")
    return truncate_text("\n".join(lines), PROFILE_SUMMARY_LIMIT)


# === [3] 매칭 서비스 ===

class RecruitmentMatchService:
    def __init__(
        self,
        source: RecruitmentSourceClient,
        scorer: RelevanceScorer,
        batch_limit: Optional[int] = None,
    ):
        self.source = source
        self.scorer = scorer
        self.batch_limit = batch_limit or settings.RECRUITMENT_MATCH_BATCH_LIMIT

    async def _score_chunk(self, chunk: List[RecruitmentItem], profile_summary: str) -> Dict[int, ScoreResult]:
        try:
            return await self.scorer.score_batch(chunk, profile_summary)
        except Exception as e:
            # 채점 실패 묶음은 점수 없이 제외 (0점 처리하지 않음)
            match_logger.warning(f"채점 묶음 실패로 {len(chunk)}건 제외: {str(e)}")
            return {}

    async def _fetch_detail(self, item: RecruitmentItem) -> RecruitmentItem:
        try:
            detail = await self.source.fetch_detail(item.posting_id)
            return item.merged_with(detail) if detail else item
        except Exception as e:
            raise DetailEnrichmentFailure(item.posting_id, e) from e

    async def _enrich_page(self, page: List[Tuple[RecruitmentItem, ScoreResult]]) -> List[RecruitmentItem]:
        # 상세 조회는 서로 독립적이므로 동시에 요청
        results = await asyncio.gather(
            *(self._fetch_detail(item) for item, _ in page),
            return_exceptions=True,
        )
        enriched = []
        for (item, _), result in zip(page, results):
            if isinstance(result, DetailEnrichmentFailure):
                match_logger.warning(str(result))
                enriched.append(item)
            elif isinstance(result, BaseException):
                raise result
            else:
                enriched.append(result)
        return enriched

    async def match_recruitments(
        self,
        profile: CandidateProfile,
        cover_letter: Optional[CoverLetterInput] = None,
        offset: Any = 0,
        limit: Any = 10,
    ) -> RecruitmentMatchResult:
        safe_offset, safe_limit = clamp_pagination(offset, limit)
        page_end = safe_offset + safe_limit
        pool_size = max(MIN_POOL_SIZE, min(page_end, MAX_POOL_SIZE))

        pool, _ = await self.source.fetch_list(1, pool_size)
        eligible = [item for item in pool if is_eligible(item, profile)]
        match_logger.info(f"추천 후보: 전체 {len(pool)}건 중 지원 가능 {len(eligible)}건")

        profile_summary = build_profile_summary(profile, cover_letter)

        # 요청 페이지를 채울 만큼만 채점 (묶음은 순서대로 처리)
        targets = eligible[:min(len(eligible), page_end)]
        score_map: Dict[int, ScoreResult] = {}
        for start in range(0, len(targets), self.batch_limit):
            chunk = targets[start:start + self.batch_limit]
            score_map.update(await self._score_chunk(chunk, profile_summary))

        # 점수를 받은 공고만 추천 목록에 포함
        scored = [(item, score_map[item.posting_id]) for item in eligible if item.posting_id in score_map]
        scored.sort(key=lambda pair: pair[1].match_score, reverse=True)

        page = scored[safe_offset:page_end]
        enriched = await self._enrich_page(page)
        items = [
            RecruitmentMatchItem.from_item(item, score.match_score, score.match_reason)
            for item, (_, score) in zip(enriched, page)
        ]

        next_offset = safe_offset + len(items)
        match_logger.info(f"추천 완료: 채점 {len(scored)}건, 반환 {len(items)}건 (offset={safe_offset})")
        return RecruitmentMatchResult(
            items=items,
            total=len(scored),
            next_offset=next_offset,
            has_more=next_offset < len(scored),
        )
