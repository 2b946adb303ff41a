"""
채용공고 저장소 연산
- 배치 upsert (공고 일련번호 기준, 중복 생성 없음)
- 이번 동기화에서 관측되지 않은 공고 비활성화
"""
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from recruitment.models.recruitment_posting import RecruitmentPosting
from recruitment.schemas.recruitment import RecruitmentItem


def ensure_aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite는 timezone 정보를 저장하지 않으므로 UTC로 간주
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def upsert_postings(db: Session, items: List[RecruitmentItem], seen_at: datetime) -> Tuple[int, int]:
    """
    공고 배치를 저장합니다. 기존 공고는 전체 필드를 덮어쓰고 새 공고는 활성 상태로 추가합니다.

    Returns:
        (신규 건수, 갱신 건수)
    """
    if not items:
        return 0, 0

    # 같은 페이지 안의 중복 일련번호는 마지막 레코드 기준
    unique_items: Dict[int, RecruitmentItem] = {}
    for item in items:
        unique_items[item.posting_id] = item

    existing = {
        posting.posting_id: posting
        for posting in db.query(RecruitmentPosting).filter(
            RecruitmentPosting.posting_id.in_(list(unique_items.keys()))
        ).all()
    }

    inserted = 0
    try:
        for posting_id, item in unique_items.items():
            posting = existing.get(posting_id)
            if posting is None:
                posting = RecruitmentPosting(posting_id=posting_id, created_at=seen_at)
                db.add(posting)
                inserted += 1
            posting.apply_source_item(item, seen_at)
        db.commit()
    except Exception:
        db.rollback()
        raise

    return inserted, len(existing)


def deactivate_unseen_postings(db: Session, sync_started_at: datetime) -> int:
    """이번 동기화 시작 이후 관측되지 않은 활성 공고를 비활성화하고 건수를 반환합니다."""
    try:
        count = db.query(RecruitmentPosting).filter(
            RecruitmentPosting.last_seen_at < sync_started_at,
            RecruitmentPosting.is_active.is_(True),
        ).update(
            {RecruitmentPosting.is_active: False, RecruitmentPosting.is_ongoing: False},
            synchronize_session=False,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    return count


def get_latest_seen_at(db: Session) -> Optional[datetime]:
    """활성 공고 중 가장 최근에 관측된 시각"""
    latest = db.query(func.max(RecruitmentPosting.last_seen_at)).filter(
        RecruitmentPosting.is_active.is_(True)
    ).scalar()
    return ensure_aware(latest)
