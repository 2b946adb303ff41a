from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

from recruitment.utils.text_utils import normalize_text, split_csv

_TEXT_FIELDS = (
    "institution_name", "title", "recruit_type_name", "qualification_text",
    "preference_text", "field_names_raw", "hire_type_names_raw",
    "region_names_raw", "education_condition_names_raw", "source_url",
)


def parse_source_date(value: Any) -> Optional[date]:
    """YYYYMMDD 또는 YYYY-MM-DD 형식의 날짜를 파싱합니다. 해석할 수 없으면 None."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = normalize_text(value).replace("-", "").replace(".", "")
    if len(text) != 8 or not text.isdigit():
        return None
    try:
        return datetime.strptime(text, "%Y%m%d").date()
    except ValueError:
        return None


class RecruitmentItem(BaseModel):
    """
    외부 채용정보 API 레코드 (list/detail 공통).

    외부 JSON을 한 번만 검증/정규화하는 경계 모델입니다.
    텍스트 필드는 모두 "문자열 또는 빈 문자열"로 맞춰지고,
    알 수 없는 키는 그대로 보존됩니다.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    posting_id: int = Field(alias="recrutPblntSn")
    institution_name: str = Field("", alias="instNm")
    title: str = Field("", alias="recrutPbancTtl")
    recruit_type_name: str = Field("", alias="recrutSeNm")
    qualification_text: str = Field("", alias="aplyQlfcCn")
    preference_text: str = Field("", alias="prefCn")
    opened_on: Optional[date] = Field(None, alias="pbancBgngYmd")
    closed_on: Optional[date] = Field(None, alias="pbancEndYmd")
    ongoing_flag: Optional[bool] = Field(None, alias="ongoingYn")
    field_names_raw: str = Field("", alias="ncsCdNmLst")
    hire_type_names_raw: str = Field("", alias="hireTypeNmLst")
    region_names_raw: str = Field("", alias="workRgnNmLst")
    education_condition_names_raw: str = Field("", alias="acbgCondNmLst")
    recruit_count: Optional[int] = Field(None, alias="recrutNope")
    source_url: str = Field("", alias="srcUrl")
    files: List[Dict[str, Any]] = Field(default_factory=list)
    steps: List[Dict[str, Any]] = Field(default_factory=list)

    _payload: Dict[str, Any] = PrivateAttr(default_factory=dict)

    @field_validator("posting_id", mode="before")
    @classmethod
    def _posting_id(cls, value):
        if isinstance(value, bool):
            raise ValueError("공고 일련번호가 올바르지 않습니다.")
        if isinstance(value, str):
            value = value.strip()
        return value

    @field_validator(*_TEXT_FIELDS, mode="before")
    @classmethod
    def _text(cls, value):
        return normalize_text(value)

    @field_validator("opened_on", "closed_on", mode="before")
    @classmethod
    def _date(cls, value):
        return parse_source_date(value)

    @field_validator("ongoing_flag", mode="before")
    @classmethod
    def _ongoing(cls, value):
        if isinstance(value, bool):
            return value
        flag = normalize_text(value).upper()
        if not flag:
            return None
        return flag != "N"

    @field_validator("recruit_count", mode="before")
    @classmethod
    def _count(cls, value):
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    @field_validator("files", "steps", mode="before")
    @classmethod
    def _records(cls, value):
        if not isinstance(value, list):
            return []
        return [entry for entry in value if isinstance(entry, dict)]

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "RecruitmentItem":
        item = cls.model_validate(payload)
        item._payload = dict(payload)
        return item

    @property
    def payload(self) -> Dict[str, Any]:
        """외부 API 원본 레코드"""
        if self._payload:
            return self._payload
        return self.model_dump(mode="json", by_alias=True)

    @property
    def is_ongoing(self) -> bool:
        # 명시적으로 마감(N) 표시된 경우만 False
        return self.ongoing_flag is not False

    @property
    def field_names(self) -> List[str]:
        return split_csv(self.field_names_raw)

    @property
    def hire_type_names(self) -> List[str]:
        return split_csv(self.hire_type_names_raw)

    @property
    def region_names(self) -> List[str]:
        return split_csv(self.region_names_raw)

    @property
    def education_condition_names(self) -> List[str]:
        return split_csv(self.education_condition_names_raw)

    @property
    def search_text(self) -> str:
        parts = [
            self.institution_name,
            self.title,
            self.recruit_type_name,
            self.qualification_text,
            self.preference_text,
            self.field_names_raw,
            self.region_names_raw,
            self.hire_type_names_raw,
            self.education_condition_names_raw,
        ]
        return " ".join(part for part in parts if part)

    def merged_with(self, detail: "RecruitmentItem") -> "RecruitmentItem":
        """상세 조회 결과를 현재 레코드 위에 덮어쓴 새 레코드를 반환합니다."""
        return RecruitmentItem.from_payload({**self.payload, **detail.payload})


class RecruitmentSyncResult(BaseModel):
    """동기화 1회 결과 요약"""
    total_fetched: int
    inserted: int
    updated: int
    deactivated: int
    page_count: int
    synced_at: datetime


class RecruitmentSyncRequest(BaseModel):
    force: bool = True


class RecruitmentListFilters(BaseModel):
    """공고 목록 필터 (모든 조건은 AND)"""
    model_config = ConfigDict(populate_by_name=True)

    q: Optional[str] = None
    regions: List[str] = Field(default_factory=list)
    job_fields: List[str] = Field(default_factory=list, alias="fields")
    career_types: List[str] = Field(default_factory=list, alias="careerTypes")
    education_levels: List[str] = Field(default_factory=list, alias="educationLevels")
    hire_types: List[str] = Field(default_factory=list, alias="hireTypes")
    include_closed: bool = Field(False, alias="includeClosed")

    @field_validator("q", mode="before")
    @classmethod
    def _keyword(cls, value):
        return normalize_text(value) or None

    @field_validator("regions", "job_fields", "career_types", "education_levels", "hire_types", mode="before")
    @classmethod
    def _values(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            return split_csv(value)
        return [text for text in (normalize_text(entry) for entry in value) if text]


class RecruitmentPostingResponse(BaseModel):
    """저장소 공고 목록 응답 항목"""
    model_config = ConfigDict(from_attributes=True)

    posting_id: int
    institution_name: str
    title: str
    recruit_type_name: str
    qualification_text: str
    preference_text: str
    opened_on: Optional[date] = None
    closed_on: Optional[date] = None
    ongoing_flag: Optional[bool] = None
    is_ongoing: bool
    field_names_raw: str
    hire_type_names_raw: str
    region_names_raw: str
    education_condition_names_raw: str
    field_names: List[str]
    hire_type_names: List[str]
    region_names: List[str]
    education_condition_names: List[str]
    updated_at: Optional[datetime] = None
    raw_payload: Dict[str, Any] = Field(default_factory=dict)


class RecruitmentListResult(BaseModel):
    items: List[RecruitmentPostingResponse]
    total: int
    next_offset: int
    has_more: bool


class RecruitmentFilterOptionsResult(BaseModel):
    """UI 필터용 facet 값 목록"""
    model_config = ConfigDict(populate_by_name=True)

    regions: List[str] = Field(default_factory=list)
    job_fields: List[str] = Field(default_factory=list, alias="fields")
    career_types: List[str] = Field(default_factory=list, alias="careerTypes")
    education_levels: List[str] = Field(default_factory=list, alias="educationLevels")
    hire_types: List[str] = Field(default_factory=list, alias="hireTypes")


class RecruitmentMatchItem(BaseModel):
    """추천 결과 항목 (적합도 점수 포함)"""
    posting_id: int
    institution_name: str
    title: str
    recruit_type_name: str
    qualification_text: str
    preference_text: str
    opened_on: Optional[date] = None
    closed_on: Optional[date] = None
    ongoing_flag: Optional[bool] = None
    recruit_count: Optional[int] = None
    source_url: str = ""
    field_names_raw: str
    hire_type_names_raw: str
    region_names_raw: str
    education_condition_names_raw: str
    field_names: List[str]
    hire_type_names: List[str]
    region_names: List[str]
    education_condition_names: List[str]
    files: List[Dict[str, Any]] = Field(default_factory=list)
    steps: List[Dict[str, Any]] = Field(default_factory=list)
    match_score: int
    match_reason: str
    raw_payload: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_item(cls, item: RecruitmentItem, match_score: int, match_reason: str) -> "RecruitmentMatchItem":
        # 리스트 필드는 병합 후 남아있는 원본 CSV에서 다시 파생
        return cls(
            posting_id=item.posting_id,
            institution_name=item.institution_name,
            title=item.title,
            recruit_type_name=item.recruit_type_name,
            qualification_text=item.qualification_text,
            preference_text=item.preference_text,
            opened_on=item.opened_on,
            closed_on=item.closed_on,
            ongoing_flag=item.ongoing_flag,
            recruit_count=item.recruit_count,
            source_url=item.source_url,
            field_names_raw=item.field_names_raw,
            hire_type_names_raw=item.hire_type_names_raw,
            region_names_raw=item.region_names_raw,
            education_condition_names_raw=item.education_condition_names_raw,
            field_names=item.field_names,
            hire_type_names=item.hire_type_names,
            region_names=item.region_names,
            education_condition_names=item.education_condition_names,
            files=item.files,
            steps=item.steps,
            match_score=match_score,
            match_reason=match_reason,
            raw_payload=item.payload,
        )


class RecruitmentMatchResult(BaseModel):
    items: List[RecruitmentMatchItem]
    total: int
    next_offset: int
    has_more: bool


class RecruitmentMatchRequest(BaseModel):
    code: str = Field(..., min_length=4, description="이력서가 저장된 인증번호")
    offset: Optional[int] = Field(None, ge=0)
    limit: Optional[int] = Field(None, ge=1, le=20)
