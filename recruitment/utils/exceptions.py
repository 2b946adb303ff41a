from fastapi import HTTPException, status
from typing import Any, Dict, Optional


# === 도메인 예외 (HTTP 계층과 무관) ===

class RecruitmentError(Exception):
    """채용공고 엔진 공통 예외"""


class ConfigurationError(RecruitmentError):
    """필수 설정(API 키 등)이 없을 때 발생. 재시도하지 않는다."""


class UpstreamError(RecruitmentError):
    """외부 공고 API가 실패 상태나 잘못된 응답을 돌려줬을 때 발생"""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ScoringFailure(RecruitmentError):
    """적합도 채점 응답을 해석할 수 없을 때 발생 (채점기 내부에서 처리됨)"""


class DetailEnrichmentFailure(RecruitmentError):
    """공고 상세 조회 실패 (매칭 엔진 내부에서 처리됨)"""

    def __init__(self, posting_id: int, cause: Exception):
        super().__init__(f"공고 상세 조회 실패: posting_id={posting_id}, 원인: {cause}")
        self.posting_id = posting_id
        self.cause = cause


# === HTTP 계층 예외 ===

class AppException(HTTPException):
    """애플리케이션 전용 예외 클래스"""
    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        extra_data: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail)
        self.error_code = error_code
        self.extra_data = extra_data or {}

def create_error_response(
    status_code: int,
    message: str,
    error_code: Optional[str] = None,
    extra_data: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """일관된 에러 응답 포맷 생성"""
    response = {
        "success": False,
        "error": {
            "code": error_code or f"ERR_{status_code}",
            "message": message
        }
    }

    if extra_data:
        response["error"]["details"] = extra_data

    return response

# 자주 사용되는 에러들
class NotFoundException(AppException):
    def __init__(self, resource: str, detail: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail or f"{resource}을(를) 찾을 수 없습니다.",
            error_code="NOT_FOUND"
        )

class BadRequestException(AppException):
    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=message,
            error_code=error_code or "BAD_REQUEST"
        )

class InternalServerException(AppException):
    def __init__(self, message: str = "서버 내부 오류가 발생했습니다."):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=message,
            error_code="INTERNAL_ERROR"
        )
