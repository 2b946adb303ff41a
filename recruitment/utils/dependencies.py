from typing import Optional

from sqlalchemy.orm import Session

from recruitment.models.access_code import AccessCode
from recruitment.services.llm_client import get_llm_client
from recruitment.services.recruitment_match import RecruitmentMatchService
from recruitment.services.recruitment_source import RecruitmentSourceClient
from recruitment.services.recruitment_sync import RecruitmentSyncService
from recruitment.services.relevance_scorer import LLMRelevanceScorer

# 전역 서비스 인스턴스 (최초 사용 시 생성)
_source_client: Optional[RecruitmentSourceClient] = None
_sync_service: Optional[RecruitmentSyncService] = None

def get_source_client() -> RecruitmentSourceClient:
    global _source_client
    if _source_client is None:
        _source_client = RecruitmentSourceClient()
    return _source_client

def get_sync_service() -> RecruitmentSyncService:
    global _sync_service
    if _sync_service is None:
        _sync_service = RecruitmentSyncService(source=get_source_client())
    return _sync_service

def get_match_service() -> RecruitmentMatchService:
    # LLM 키가 없으면 ConfigurationError
    scorer = LLMRelevanceScorer(get_llm_client())
    return RecruitmentMatchService(source=get_source_client(), scorer=scorer)

def find_access_code(db: Session, code: str) -> Optional[AccessCode]:
    return db.query(AccessCode).filter(AccessCode.code == code).first()
