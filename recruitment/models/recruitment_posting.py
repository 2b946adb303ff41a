from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DDL, Boolean, Column, Date, DateTime, Index, Integer, JSON, String, Text, event
from sqlalchemy.orm import validates
from sqlalchemy.sql import func
from sqlalchemy.types import TypeDecorator

from recruitment.database.PostgreSQL import Base
from recruitment.utils.text_utils import normalize_text, split_csv

if TYPE_CHECKING:
    from recruitment.schemas.recruitment import RecruitmentItem

TOKEN_DELIMITER = "|"


class TokenList(TypeDecorator):
    """
    문자열 리스트를 "|서울|경기|" 형태의 텍스트로 저장하는 컬럼 타입.
    포함 여부 검사가 어느 DB에서나 LIKE '%|서울|%' 한 번으로 끝난다.
    """
    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, str):
            return value
        tokens = [str(token).replace(TOKEN_DELIMITER, " ").strip() for token in value]
        tokens = [token for token in tokens if token]
        if not tokens:
            return ""
        return TOKEN_DELIMITER + TOKEN_DELIMITER.join(tokens) + TOKEN_DELIMITER

    def process_result_value(self, value, dialect):
        if not value:
            return []
        return [token for token in value.split(TOKEN_DELIMITER) if token]

    def coerce_compared_value(self, op, value):
        # LIKE 비교 시 바인드 값은 일반 문자열로 취급
        if isinstance(value, str):
            return Text()
        return self


def token_pattern(value: str) -> str:
    """TokenList 컬럼에서 단일 토큰을 찾기 위한 부분 문자열"""
    return f"{TOKEN_DELIMITER}{value}{TOKEN_DELIMITER}"


# 부분 문자열(LIKE '%...%') 검색 대상 컬럼: PostgreSQL에서 pg_trgm GIN 인덱스 생성
TRIGRAM_INDEXED_COLUMNS = (
    "search_text",
    "title",
    "institution_name",
    "field_names",
    "hire_type_names",
    "region_names",
    "education_condition_names",
)


def _trigram_index(column_name: str) -> Index:
    return Index(
        f"ix_recruitment_postings_{column_name}_trgm",
        column_name,
        postgresql_using="gin",
        postgresql_ops={column_name: "gin_trgm_ops"},
    ).ddl_if(dialect="postgresql")


# 원본 CSV 컬럼 -> 파생 리스트 컬럼
DERIVED_LIST_COLUMNS = {
    "field_names_raw": "field_names",
    "hire_type_names_raw": "hire_type_names",
    "region_names_raw": "region_names",
    "education_condition_names_raw": "education_condition_names",
}


class RecruitmentPosting(Base):
    __tablename__ = "recruitment_postings"

    posting_id = Column(Integer, primary_key=True, autoincrement=False)  # 공고 일련번호 (외부 API 제공)
    institution_name = Column(String(255), nullable=False, default="")  # 기관명
    title = Column(String(500), nullable=False, default="")  # 공고 제목
    recruit_type_name = Column(String(100), nullable=False, default="")  # 채용구분 (신입/경력)
    qualification_text = Column(Text, nullable=False, default="")  # 응시 자격
    preference_text = Column(Text, nullable=False, default="")  # 우대 사항
    opened_on = Column(Date, nullable=True)  # 공고 시작일
    closed_on = Column(Date, nullable=True)  # 공고 마감일
    ongoing_flag = Column(Boolean, nullable=True)  # 진행 여부 원본 (None=알 수 없음)

    # 외부 API 원본 CSV 문자열
    field_names_raw = Column(Text, nullable=False, default="")  # NCS 직무분야
    hire_type_names_raw = Column(Text, nullable=False, default="")  # 고용형태
    region_names_raw = Column(Text, nullable=False, default="")  # 근무지역
    education_condition_names_raw = Column(Text, nullable=False, default="")  # 학력조건

    # 필터링용 파생 리스트 (원본 CSV에서만 파생됨)
    field_names = Column(TokenList, nullable=False, default="")
    hire_type_names = Column(TokenList, nullable=False, default="")
    region_names = Column(TokenList, nullable=False, default="")
    education_condition_names = Column(TokenList, nullable=False, default="")

    search_text = Column(Text, nullable=False, default="")  # 키워드 검색용 통합 텍스트

    is_active = Column(Boolean, nullable=False, default=True)  # 최근 동기화에서 관측 여부
    is_ongoing = Column(Boolean, nullable=False, default=True)  # 진행중 공고 여부
    last_seen_at = Column(DateTime(timezone=True), nullable=False, index=True)  # 마지막 관측 시각
    raw_payload = Column(JSON, nullable=False, default=dict)  # 외부 API 원본 레코드

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_recruitment_postings_active_ongoing", "is_active", "is_ongoing"),
        Index("ix_recruitment_postings_order", "updated_at", "closed_on", "posting_id"),
        *[_trigram_index(column_name) for column_name in TRIGRAM_INDEXED_COLUMNS],
    )

    @validates(*DERIVED_LIST_COLUMNS.keys())
    def _derive_token_list(self, key, value):
        normalized = normalize_text(value)
        setattr(self, DERIVED_LIST_COLUMNS[key], split_csv(normalized))
        return normalized

    def apply_source_item(self, item: "RecruitmentItem", seen_at: datetime) -> None:
        """외부 레코드로 서술/파생 필드 전체를 덮어씁니다 (부분 병합 없음)."""
        self.institution_name = item.institution_name
        self.title = item.title
        self.recruit_type_name = item.recruit_type_name
        self.qualification_text = item.qualification_text
        self.preference_text = item.preference_text
        self.opened_on = item.opened_on
        self.closed_on = item.closed_on
        self.ongoing_flag = item.ongoing_flag
        self.field_names_raw = item.field_names_raw
        self.hire_type_names_raw = item.hire_type_names_raw
        self.region_names_raw = item.region_names_raw
        self.education_condition_names_raw = item.education_condition_names_raw
        self.search_text = item.search_text
        self.is_active = True
        self.is_ongoing = item.is_ongoing
        self.last_seen_at = seen_at
        self.updated_at = seen_at
        self.raw_payload = item.payload


# 트라이그램 인덱스에 필요한 확장 (PostgreSQL 전용)
event.listen(
    Base.metadata,
    "before_create",
    DDL("CREATE EXTENSION IF NOT EXISTS pg_trgm").execute_if(dialect="postgresql"),
)
