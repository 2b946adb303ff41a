"""
테스트 공통 설정

- 앱 import 전에 인메모리 SQLite와 스케줄러 비활성화를 환경변수로 지정
- 외부 채용정보 API / LLM 채점기는 가짜 구현으로 대체
"""

import asyncio
import os

os.environ["SQLALCHEMY_DATABASE_URI"] = "sqlite://"
os.environ["DISABLE_SCHEDULER"] = "true"
os.environ.setdefault("RECRUITMENT_SERVICE_KEY", "test-service-key")

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest
from sqlalchemy.orm import sessionmaker

from recruitment.database import Base, build_engine
from recruitment.models import AccessCode, RecruitmentPosting  # noqa: F401
from recruitment.schemas.recruitment import RecruitmentItem
from recruitment.schemas.resume import CandidateProfile
from recruitment.services.recruitment_query import invalidate_filter_options_cache
from recruitment.services.relevance_scorer import RelevanceScorer, ScoreResult
from recruitment.utils.exceptions import UpstreamError


def make_payload(posting_id: int, **overrides: Any) -> Dict[str, Any]:
    """외부 API 형식(camelCase)의 공고 레코드"""
    payload = {
        "recrutPblntSn": posting_id,
        "instNm": f"기관{posting_id}",
        "recrutPbancTtl": f"공고{posting_id}",
        "recrutSeNm": "신입",
        "aplyQlfcCn": "",
        "prefCn": "",
        "pbancBgngYmd": "20260101",
        "pbancEndYmd": "20261231",
        "ongoingYn": "Y",
        "ncsCdNmLst": "",
        "hireTypeNmLst": "정규직",
        "workRgnNmLst": "서울",
        "acbgCondNmLst": "학력무관",
    }
    payload.update(overrides)
    return payload


def make_item(posting_id: int, **overrides: Any) -> RecruitmentItem:
    return RecruitmentItem.from_payload(make_payload(posting_id, **overrides))


class FakeSourceClient:
    """
    페이지 단위로 공고를 돌려주는 가짜 외부 API.
    fail_on_page에 해당하는 페이지를 요청하면 UpstreamError를 던진다.
    """

    def __init__(
        self,
        items: Optional[List[RecruitmentItem]] = None,
        total_count: Optional[int] = None,
        fail_on_page: Optional[int] = None,
        details: Optional[Dict[int, Any]] = None,
        delay: float = 0,
    ):
        self.items = items or []
        self.total_count = total_count
        self.fail_on_page = fail_on_page
        self.details = details or {}
        self.delay = delay
        self.list_calls: List[tuple] = []
        self.detail_calls: List[int] = []

    async def fetch_list(self, page_no: int = 1, num_of_rows: int = 50):
        self.list_calls.append((page_no, num_of_rows))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_on_page is not None and page_no == self.fail_on_page:
            raise UpstreamError("채용정보 API 요청 실패: list, status=503", status_code=503, body="busy")
        start = (page_no - 1) * num_of_rows
        total = len(self.items) if self.total_count is None else self.total_count
        return list(self.items[start:start + num_of_rows]), total

    async def fetch_detail(self, posting_id: int):
        self.detail_calls.append(posting_id)
        detail = self.details.get(posting_id)
        if isinstance(detail, Exception):
            raise detail
        return detail


class FakeScorer(RelevanceScorer):
    """
    고정 점수표로 채점하는 가짜 채점기.
    fail_chunks에 포함된 호출 순번(0부터)의 묶음은 예외를 던진다.
    """

    def __init__(self, scores: Optional[Dict[int, int]] = None, default_score: Optional[int] = 50,
                 fail_chunks: Optional[set] = None):
        self.scores = scores or {}
        self.default_score = default_score
        self.fail_chunks = fail_chunks or set()
        self.chunks: List[List[int]] = []

    async def score_batch(self, postings, profile_summary):
        index = len(self.chunks)
        self.chunks.append([posting.posting_id for posting in postings])
        if index in self.fail_chunks:
            raise RuntimeError("채점기 오류")

        results = {}
        for posting in postings:
            score = self.scores.get(posting.posting_id, self.default_score)
            if score is None:
                continue
            results[posting.posting_id] = ScoreResult(match_score=score, match_reason=f"사유{posting.posting_id}")
        return results


class FakeClock:
    """호출할 때마다 현재 시각을 돌려주고, advance로 시간을 진행시키는 시계"""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture(autouse=True)
def clear_filter_options_cache():
    invalidate_filter_options_cache()
    yield
    invalidate_filter_options_cache()


@pytest.fixture
def engine():
    """테스트마다 새로운 인메모리 DB"""
    test_engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fresh_graduate():
    """경력이 없고 서울에 거주하는 대졸 지원자"""
    return CandidateProfile.model_validate({
        "name": "홍길동",
        "address": "서울특별시 마포구",
        "desiredJob": "데이터 분석",
        "education": [
            {"schoolName": "한국대학교", "major": "통계학", "graduationStatus": "졸업"},
        ],
        "workExperience": [],
        "coreCompetencies": [{"fullDescription": "파이썬 데이터 분석"}],
        "certifications": [{"certificationName": "ADsP", "institution": "한국데이터산업진흥원"}],
    })


@pytest.fixture
def experienced_candidate():
    """경력이 있는 부산 거주 지원자 (학력 정보 없음)"""
    return CandidateProfile.model_validate({
        "name": "김경력",
        "address": "부산광역시 해운대구",
        "desiredJob": "시설 관리",
        "education": [],
        "workExperience": [{"companyName": "부산공사", "mainTask": "시설 유지보수"}],
    })
