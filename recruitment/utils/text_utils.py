import re
from typing import Any, Iterable, List, Tuple

_CODE_FENCE_START = re.compile(r'^```(?:json)?\s*', re.IGNORECASE)
_CODE_FENCE_END = re.compile(r'```$')
_CAREER_DELIMITERS = re.compile(r'[/,|]')


def normalize_text(value: Any) -> str:
    """None은 빈 문자열로, 그 외는 문자열로 바꾼 뒤 앞뒤 공백을 제거합니다."""
    if value is None:
        return ""
    return str(value).strip()


def split_csv(value: Any) -> List[str]:
    """콤마로 구분된 문자열을 공백 제거된 토큰 리스트로 분리합니다. 빈 토큰은 버립니다."""
    return [token.strip() for token in normalize_text(value).split(",") if token.strip()]


def split_career_type(value: Any) -> List[str]:
    """
    채용구분 문자열을 필터용 토큰으로 분리합니다.

    "신입/경력" 처럼 합쳐진 값은 구분자 기준 토큰에 더해
    "신입", "경력"을 각각 추가로 돌려줍니다.

    Args:
        value: 채용구분명 (예: "신입+경력", "경력")

    Returns:
        중복이 있을 수 있는 토큰 리스트
    """
    raw = normalize_text(value)
    if not raw:
        return []

    tokens = [token.strip() for token in _CAREER_DELIMITERS.split(raw) if token.strip()]
    if "신입" in raw:
        tokens.append("신입")
    if "경력" in raw:
        tokens.append("경력")
    return tokens


def truncate_text(value: str, max_length: int) -> str:
    if len(value) <= max_length:
        return value
    return f"{value[:max_length]}..."


def _is_hangul(char: str) -> bool:
    return "\uac00" <= char <= "\ud7a3" or "\u3131" <= char <= "\u318e" or "\u1100" <= char <= "\u11ff"


def korean_sort_key(value: str) -> List[Tuple[int, str]]:
    """한글을 다른 문자보다 앞에 두는 정렬 키 (한글끼리는 가나다 순)"""
    return [(0, char) if _is_hangul(char) else (1, char.casefold()) for char in value]


def sort_unique(values: Iterable[str]) -> List[str]:
    return sorted(set(values), key=lambda value: (korean_sort_key(value), value))


def strip_code_fence(text: str) -> str:
    """LLM 응답에 붙은 ```json 코드블록 표시를 제거합니다."""
    cleaned = normalize_text(text)
    cleaned = _CODE_FENCE_START.sub('', cleaned)
    cleaned = _CODE_FENCE_END.sub('', cleaned)
    return cleaned.strip()
