import asyncio

import pytest

from recruitment.schemas.resume import CandidateProfile, CoverLetterInput
from recruitment.services.recruitment_match import (
    RecruitmentMatchService,
    build_profile_summary,
    extract_region,
    is_eligible,
    matches_career,
    matches_education,
    matches_region,
)
from recruitment.utils.exceptions import UpstreamError
from tests.conftest import FakeScorer, FakeSourceClient, make_item


def _match(service, profile, offset=0, limit=10, cover_letter=None):
    return asyncio.run(service.match_recruitments(profile, cover_letter, offset, limit))


# === 지원 자격 필터 ===

def test_career_filter(fresh_graduate, experienced_candidate):
    assert matches_career(make_item(1, recrutSeNm="신입"), fresh_graduate) is True
    assert matches_career(make_item(1, recrutSeNm="경력"), fresh_graduate) is False
    assert matches_career(make_item(1, recrutSeNm="신입"), experienced_candidate) is False
    assert matches_career(make_item(1, recrutSeNm="경력"), experienced_candidate) is True
    assert matches_career(make_item(1, recrutSeNm="신입+경력"), fresh_graduate) is True
    assert matches_career(make_item(1, recrutSeNm="외국인"), fresh_graduate) is True
    assert matches_career(make_item(1, recrutSeNm=""), experienced_candidate) is True


def test_education_filter(fresh_graduate, experienced_candidate):
    degree_required = make_item(1, acbgCondNmLst="대졸(4년)")

    assert matches_education(degree_required, fresh_graduate) is True
    assert matches_education(degree_required, experienced_candidate) is False
    assert matches_education(make_item(1, acbgCondNmLst="학력무관"), experienced_candidate) is True
    assert matches_education(make_item(1, acbgCondNmLst="고졸"), experienced_candidate) is True
    assert matches_education(make_item(1, acbgCondNmLst=""), experienced_candidate) is True


def test_region_filter(fresh_graduate):
    assert extract_region("서울특별시 마포구") == "서울"
    assert extract_region("해외") == ""
    assert matches_region(make_item(1, workRgnNmLst="서울,경기"), fresh_graduate) is True
    assert matches_region(make_item(1, workRgnNmLst="부산"), fresh_graduate) is False
    assert matches_region(make_item(1, workRgnNmLst="전국"), fresh_graduate) is True
    assert matches_region(make_item(1, workRgnNmLst=""), fresh_graduate) is True

    no_address = CandidateProfile(name="주소없음")
    assert matches_region(make_item(1, workRgnNmLst="부산"), no_address) is True


def test_is_eligible_requires_all_filters(fresh_graduate):
    assert is_eligible(make_item(1), fresh_graduate) is True
    assert is_eligible(make_item(1, workRgnNmLst="부산"), fresh_graduate) is False


def test_profile_summary_includes_cover_letter_and_is_capped(fresh_graduate):
    cover_letter = CoverLetterInput(motivation="공공 데이터로 시민에게 도움이 되고 싶습니다.")

    summary = build_profile_summary(fresh_graduate, cover_letter)

    assert "희망 직무: 데이터 분석" in summary
    assert "한국대학교 통계학 졸업" in summary
    assert "자기소개서 요약: 공공 데이터로" in summary

    long_profile = fresh_graduate.model_copy(update={"desired_job": "가" * 3000})
    assert len(build_profile_summary(long_profile)) == 2003


# === 매칭 서비스 ===

def test_ineligible_postings_are_never_scored(fresh_graduate):
    source = FakeSourceClient(items=[
        make_item(1, recrutSeNm="경력"),
        make_item(2),
        make_item(3, workRgnNmLst="부산"),
        make_item(4),
    ])
    scorer = FakeScorer(scores={2: 40, 4: 90})
    service = RecruitmentMatchService(source, scorer, batch_limit=20)

    result = _match(service, fresh_graduate)

    assert scorer.chunks == [[2, 4]]
    assert [item.posting_id for item in result.items] == [4, 2]
    assert [item.match_score for item in result.items] == [90, 40]
    assert result.items[0].match_reason == "사유4"
    assert source.list_calls == [(1, 50)]


def test_scoring_is_chunked_and_limited_to_requested_page(fresh_graduate):
    source = FakeSourceClient(items=[make_item(i) for i in range(1, 61)])
    scorer = FakeScorer()
    service = RecruitmentMatchService(source, scorer, batch_limit=20)

    result = _match(service, fresh_graduate, offset=0, limit=25)

    assert [len(chunk) for chunk in scorer.chunks] == [20, 5]
    assert result.total == 25
    assert len(result.items) == 25


def test_failed_chunk_excludes_its_postings(fresh_graduate):
    source = FakeSourceClient(items=[make_item(i) for i in range(1, 31)])
    scorer = FakeScorer(fail_chunks={0})
    service = RecruitmentMatchService(source, scorer, batch_limit=10)

    result = _match(service, fresh_graduate, offset=0, limit=30)

    returned = {item.posting_id for item in result.items}
    assert returned == set(range(11, 31))
    assert result.total == 20


def test_unscored_postings_are_excluded(fresh_graduate):
    source = FakeSourceClient(items=[make_item(1), make_item(2), make_item(3)])
    scorer = FakeScorer(scores={2: None})
    service = RecruitmentMatchService(source, scorer)

    result = _match(service, fresh_graduate)

    # 동점은 원래 목록 순서 유지
    assert [item.posting_id for item in result.items] == [1, 3]
    assert result.total == 2


def test_pagination_invariants(fresh_graduate):
    source = FakeSourceClient(items=[make_item(i) for i in range(1, 16)])
    scorer = FakeScorer(scores={i: i for i in range(1, 16)})
    service = RecruitmentMatchService(source, scorer)

    first = _match(service, fresh_graduate, offset=0, limit=10)
    second = _match(service, fresh_graduate, offset=10, limit=5)
    beyond = _match(service, fresh_graduate, offset=40, limit=5)

    assert [item.match_score for item in first.items] == list(range(10, 0, -1))
    assert first.next_offset == 10
    assert first.has_more is False
    assert first.total == 10

    # 뒤 페이지는 더 많은 공고를 채점한 순위에서 잘라낸다
    assert [item.match_score for item in second.items] == list(range(5, 0, -1))
    assert second.next_offset == 15
    assert second.total == 15
    assert second.has_more is False

    assert beyond.items == []
    assert beyond.next_offset == 40
    assert beyond.has_more is False


def test_pool_size_grows_with_page_end(fresh_graduate):
    source = FakeSourceClient(items=[])
    service = RecruitmentMatchService(source, FakeScorer())

    _match(service, fresh_graduate, offset=45, limit=20)
    _match(service, fresh_graduate, offset=10000, limit=20)

    assert source.list_calls == [(1, 65), (1, 500)]


def test_detail_enrichment_merges_and_tolerates_failures(fresh_graduate):
    source = FakeSourceClient(
        items=[make_item(1), make_item(2)],
        details={
            1: make_item(1, files=[{"atchFileNm": "공고문.hwp"}], workRgnNmLst="서울,인천"),
            2: UpstreamError("상세 조회 실패", status_code=500),
        },
    )
    scorer = FakeScorer(scores={1: 70, 2: 60})
    service = RecruitmentMatchService(source, scorer)

    result = _match(service, fresh_graduate)

    first, second = result.items
    assert first.posting_id == 1
    assert first.files == [{"atchFileNm": "공고문.hwp"}]
    assert first.region_names == ["서울", "인천"]
    assert first.match_score == 70
    assert second.posting_id == 2
    assert second.files == []
    assert second.match_score == 60
    assert sorted(source.detail_calls) == [1, 2]


def test_detail_is_fetched_only_for_returned_page(fresh_graduate):
    source = FakeSourceClient(items=[make_item(i) for i in range(1, 8)])
    scorer = FakeScorer(scores={i: 100 - i for i in range(1, 8)})
    service = RecruitmentMatchService(source, scorer)

    _match(service, fresh_graduate, offset=0, limit=3)

    assert sorted(source.detail_calls) == [1, 2, 3]


def test_source_failure_propagates(fresh_graduate):
    source = FakeSourceClient(items=[make_item(1)], fail_on_page=1)
    service = RecruitmentMatchService(source, FakeScorer())

    with pytest.raises(UpstreamError):
        _match(service, fresh_graduate)
