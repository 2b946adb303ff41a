import asyncio
import json
from unittest.mock import AsyncMock, Mock

import pytest

from recruitment.services.relevance_scorer import (
    LLMRelevanceScorer,
    build_posting_summaries,
    clamp_score,
    parse_score_response,
)
from recruitment.utils.exceptions import ScoringFailure
from tests.conftest import make_item


def test_clamp_score():
    assert clamp_score(150) == 100
    assert clamp_score(-3) == 0
    assert clamp_score("abc") == 0
    assert clamp_score(None) == 0
    assert clamp_score(float("nan")) == 0
    assert clamp_score("72.6") == 73
    assert clamp_score(True) == 0


def test_parse_score_response_clamps_and_keys_by_posting_id():
    text = json.dumps({"items": [
        {"recrutPblntSn": 1, "matchScore": 150, "matchReason": "  자격 요건 충족 "},
        {"recrutPblntSn": "2", "matchScore": "abc", "matchReason": None},
        {"matchScore": 90, "matchReason": "일련번호 없음"},
        "not-an-entry",
    ]})

    results = parse_score_response(text)

    assert set(results.keys()) == {1, 2}
    assert results[1].match_score == 100
    assert results[1].match_reason == "자격 요건 충족"
    assert results[2].match_score == 0
    assert results[2].match_reason == ""


def test_parse_score_response_strips_code_fence():
    text = '```json\n{"items": [{"recrutPblntSn": 5, "matchScore": 80, "matchReason": "좋음"}]}\n```'

    assert parse_score_response(text)[5].match_score == 80


def test_parse_score_response_without_items_is_empty():
    assert parse_score_response('{"result": []}') == {}
    assert parse_score_response('{"items": "none"}') == {}


@pytest.mark.parametrize("text", [None, "", "점수를 매길 수 없습니다"])
def test_parse_score_response_rejects_unparseable(text):
    with pytest.raises(ScoringFailure):
        parse_score_response(text)


def test_posting_summaries_truncate_long_text():
    item = make_item(1, aplyQlfcCn="가" * 400, prefCn="나" * 250)

    summary = build_posting_summaries([item])[0]

    assert summary["recrutPblntSn"] == 1
    assert summary["qualification"] == "가" * 300 + "..."
    assert summary["preference"] == "나" * 200 + "..."


def test_llm_scorer_sends_profile_and_postings():
    llm_client = Mock()
    llm_client.chat_completion = AsyncMock(return_value=json.dumps({"items": [
        {"recrutPblntSn": 1, "matchScore": 88, "matchReason": "전공 일치"},
    ]}))
    scorer = LLMRelevanceScorer(llm_client)

    results = asyncio.run(scorer.score_batch([make_item(1), make_item(2)], "희망 직무: 데이터 분석"))

    assert list(results.keys()) == [1]
    assert results[1].match_score == 88
    messages = llm_client.chat_completion.call_args.args[0]
    assert messages[0]["role"] == "system"
    assert "희망 직무: 데이터 분석" in messages[1]["content"]
    assert '"recrutPblntSn": 2' in messages[1]["content"]


def test_llm_scorer_returns_empty_on_bad_response():
    llm_client = Mock()
    llm_client.chat_completion = AsyncMock(return_value="죄송합니다. JSON을 만들 수 없습니다.")
    scorer = LLMRelevanceScorer(llm_client)

    assert asyncio.run(scorer.score_batch([make_item(1)], "요약")) == {}


def test_llm_scorer_skips_empty_batch():
    llm_client = Mock()
    llm_client.chat_completion = AsyncMock()
    scorer = LLMRelevanceScorer(llm_client)

    assert asyncio.run(scorer.score_batch([], "요약")) == {}
    llm_client.chat_completion.assert_not_called()
