'''
공고 적합도 채점 모듈입니다.
- 지원자 요약과 공고 묶음을 LLM에 보내 공고별 점수(0~100)와 사유를 받습니다.
- 응답을 해석할 수 없으면 해당 묶음은 빈 결과로 처리합니다.
'''
import json
import math
from typing import Any, Dict, List, Optional

from openai.types.chat import ChatCompletionMessageParam
from pydantic import BaseModel

from recruitment.schemas.recruitment import RecruitmentItem
from recruitment.services.llm_client import OpenRouterClient
from recruitment.utils.exceptions import ScoringFailure
from recruitment.utils.logger import match_logger
from recruitment.utils.text_utils import normalize_text, strip_code_fence, truncate_text

QUALIFICATION_SUMMARY_LIMIT = 300
PREFERENCE_SUMMARY_LIMIT = 200

SCORING_SYSTEM_PROMPT = """
너는 채용 공고와 지원자 정보를 비교해 적합도를 평가하는 AI다.
아래 정보를 보고 JSON 형식으로만 출력해.

{
  "items": [
    {
      "recrutPblntSn": number,
      "matchScore": number,
      "matchReason": string
    }
  ]
}

규칙:
- matchScore는 0~100 사이 정수.
- matchReason은 1~2문장으로 간단히.
- 과장하지 말고 입력 정보에 근거해서 판단.
- 출력 항목은 입력된 공고 리스트에 대해서만 작성한다.
"""


class ScoreResult(BaseModel):
    match_score: int
    match_reason: str


def clamp_score(value: Any) -> int:
    """점수를 0~100 정수로 맞춥니다. 숫자가 아니거나 유한하지 않으면 0."""
    if isinstance(value, bool):
        return 0
    try:
        score = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(score):
        return 0
    return int(round(max(0.0, min(100.0, score))))


def _parse_posting_id(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number != int(number):
        return None
    return int(number)


def build_posting_summaries(postings: List[RecruitmentItem]) -> List[Dict[str, Any]]:
    return [
        {
            "recrutPblntSn": posting.posting_id,
            "instNm": posting.institution_name,
            "title": posting.title,
            "recruitType": posting.recruit_type_name,
            "region": posting.region_names_raw,
            "qualification": truncate_text(posting.qualification_text, QUALIFICATION_SUMMARY_LIMIT),
            "preference": truncate_text(posting.preference_text, PREFERENCE_SUMMARY_LIMIT),
        }
        for posting in postings
    ]


def parse_score_response(text: Optional[str]) -> Dict[int, ScoreResult]:
    """
    채점 응답(JSON)을 공고 일련번호별 점수로 변환합니다.

    Raises:
        ScoringFailure: 응답이 비었거나 JSON이 아닐 때
    """
    if not text:
        raise ScoringFailure("채점 응답이 비어 있습니다.")

    try:
        parsed = json.loads(strip_code_fence(text))
    except json.JSONDecodeError as e:
        raise ScoringFailure(f"채점 응답을 JSON으로 파싱할 수 없습니다: {str(e)}") from e

    entries = parsed.get("items") if isinstance(parsed, dict) else None
    if not isinstance(entries, list):
        entries = []

    results: Dict[int, ScoreResult] = {}
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        posting_id = _parse_posting_id(entry.get("recrutPblntSn"))
        if posting_id is None:
            continue
        results[posting_id] = ScoreResult(
            match_score=clamp_score(entry.get("matchScore")),
            match_reason=normalize_text(entry.get("matchReason")),
        )
    return results


class RelevanceScorer:
    """지원자 요약과 공고 묶음을 받아 공고별 적합도를 돌려주는 채점기 인터페이스"""

    async def score_batch(self, postings: List[RecruitmentItem], profile_summary: str) -> Dict[int, ScoreResult]:
        raise NotImplementedError


class LLMRelevanceScorer(RelevanceScorer):
    def __init__(self, llm_client: OpenRouterClient, temperature: float = 0.2):
        self.llm_client = llm_client
        self.temperature = temperature

    def build_messages(self, postings: List[RecruitmentItem], profile_summary: str) -> List[ChatCompletionMessageParam]:
        user_prompt = (
            f"지원자 정보:\n{profile_summary}\n\n"
            f"공고 목록(JSON):\n{json.dumps(build_posting_summaries(postings), ensure_ascii=False)}"
        )
        return [
            {"role": "system", "content": SCORING_SYSTEM_PROMPT},
            {"role": "user", "content": user_prompt},
        ]

    async def score_batch(self, postings: List[RecruitmentItem], profile_summary: str) -> Dict[int, ScoreResult]:
        if not postings:
            return {}

        response = await self.llm_client.chat_completion(
            self.build_messages(postings, profile_summary),
            temperature=self.temperature,
        )
        try:
            return parse_score_response(response)
        except ScoringFailure as e:
            match_logger.warning(f"적합도 채점 실패로 묶음 제외: {len(postings)}건, 원인: {str(e)}")
            return {}
