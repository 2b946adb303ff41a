"""
공공데이터포털 채용정보 API 클라이언트
- 공고 목록(페이지 단위) 조회
- 공고 상세 조회
재시도는 하지 않습니다. 호출하는 쪽에서 결정합니다.
"""
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote, urlencode

import httpx
from pydantic import ValidationError

from recruitment.config import settings
from recruitment.schemas.recruitment import RecruitmentItem
from recruitment.utils.exceptions import ConfigurationError, UpstreamError
from recruitment.utils.logger import source_logger

SUCCESS_RESULT_CODE = "200"


class RecruitmentSourceClient:
    """외부 채용정보 API와 통신하는 클라이언트"""

    def __init__(
        self,
        service_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.service_key = settings.RECRUITMENT_SERVICE_KEY if service_key is None else service_key
        self.base_url = (base_url or settings.RECRUITMENT_API_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.RECRUITMENT_HTTP_TIMEOUT_SECONDS
        self.transport = transport

    def _encoded_service_key(self) -> str:
        if not self.service_key:
            raise ConfigurationError("RECRUITMENT_SERVICE_KEY가 설정되지 않았습니다.")
        # 포털에서 발급한 인코딩 키는 그대로 사용
        if "%" in self.service_key:
            return self.service_key
        return quote(self.service_key, safe="")

    async def _get_json(self, path: str, params: Dict[str, Any]) -> Tuple[Dict[str, Any], str]:
        """JSON 본문과 원본 응답 텍스트를 함께 반환합니다."""
        url = f"{self.base_url}/{path}?serviceKey={self._encoded_service_key()}&{urlencode(params)}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(url)
        except httpx.TimeoutException as e:
            raise UpstreamError(f"채용정보 API 응답 시간 초과: {path}") from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"채용정보 API 연결 실패: {path}, 오류: {str(e)}") from e

        body = response.text
        if not response.is_success:
            raise UpstreamError(
                f"채용정보 API 요청 실패: {path}, status={response.status_code}",
                status_code=response.status_code,
                body=body,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError(
                f"채용정보 API 응답을 JSON으로 파싱할 수 없습니다: {path}",
                status_code=response.status_code,
                body=body,
            ) from e

        if not isinstance(data, dict):
            raise UpstreamError(
                f"채용정보 API 응답 형식이 올바르지 않습니다: {path}",
                status_code=response.status_code,
                body=body,
            )
        return data, body

    @staticmethod
    def _check_result_code(data: Dict[str, Any], body: str, path: str, required: bool) -> None:
        result_code = data.get("resultCode")
        if result_code is None and not required:
            return
        if str(result_code) != SUCCESS_RESULT_CODE:
            message = data.get("resultMsg") or "채용정보 API가 실패 코드를 반환했습니다."
            raise UpstreamError(f"{message} ({path}, resultCode={result_code})", body=body)

    @staticmethod
    def _parse_item(payload: Any) -> Optional[RecruitmentItem]:
        if not isinstance(payload, dict):
            return None
        try:
            return RecruitmentItem.from_payload(payload)
        except ValidationError as e:
            source_logger.warning(
                f"공고 레코드 형식 오류로 제외: recrutPblntSn={payload.get('recrutPblntSn')}, 오류: {e.error_count()}건"
            )
            return None

    async def fetch_list(self, page_no: int = 1, num_of_rows: int = 50) -> Tuple[List[RecruitmentItem], int]:
        """
        공고 목록 한 페이지를 조회합니다.

        Args:
            page_no: 1부터 시작하는 페이지 번호
            num_of_rows: 페이지 크기

        Returns:
            (공고 리스트, 외부 API가 알려준 전체 건수)

        Raises:
            UpstreamError: 레코드가 있는 페이지에서 하나도 해석하지 못했을 때
        """
        data, body = await self._get_json("list", {
            "pageNo": str(page_no),
            "numOfRows": str(num_of_rows),
            "resultType": "json",
        })
        self._check_result_code(data, body, "list", required=False)

        raw_items = data.get("result") or []
        if isinstance(raw_items, dict):
            raw_items = [raw_items]
        elif not isinstance(raw_items, list):
            raw_items = []
        items = [item for item in (self._parse_item(raw) for raw in raw_items) if item is not None]

        if raw_items and not items:
            raise UpstreamError(
                f"공고 목록 레코드를 하나도 해석할 수 없습니다: page={page_no}, 수신={len(raw_items)}건",
                body=body,
            )

        try:
            total_count = int(data.get("totalCount") or 0)
        except (TypeError, ValueError):
            total_count = 0

        source_logger.info(f"공고 목록 조회: page={page_no}, rows={num_of_rows}, 수신={len(items)}건, 전체={total_count}건")
        return items, total_count

    async def fetch_detail(self, posting_id: int) -> Optional[RecruitmentItem]:
        """공고 상세를 조회합니다. 결과가 없으면 None."""
        data, body = await self._get_json("detail", {
            "sn": str(posting_id),
            "resultType": "json",
        })
        self._check_result_code(data, body, "detail", required=True)
        return self._parse_item(data.get("result"))
