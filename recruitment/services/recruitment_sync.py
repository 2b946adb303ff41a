"""
채용공고 동기화 서비스
외부 API의 전체 공고를 페이지 순서대로 가져와 저장소에 upsert 하고,
이번 동기화에서 보이지 않은 공고를 비활성화합니다.
"""

import asyncio
import threading
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Optional, Tuple

import anyio.to_thread
from sqlalchemy.orm import Session

from recruitment.config import settings
from recruitment.database import SessionLocal
from recruitment.schemas.recruitment import RecruitmentSyncResult
from recruitment.services.posting_store import (
    deactivate_unseen_postings,
    get_latest_seen_at,
    upsert_postings,
)
from recruitment.services.recruitment_query import invalidate_filter_options_cache
from recruitment.services.recruitment_source import RecruitmentSourceClient
from recruitment.utils.logger import sync_logger


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SyncCoordinator:
    """
    프로세스 내 진행 중인 동기화 작업 핸들을 하나만 보관합니다.
    작업이 끝나면(성공/실패 모두) 핸들은 정확히 한 번 비워집니다.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._current: Optional[asyncio.Future] = None

    def current_or_none(self) -> Optional[asyncio.Future]:
        with self._lock:
            if self._current is not None and not self._current.done():
                return self._current
            return None

    def try_start(self, operation: Callable[[], Awaitable[RecruitmentSyncResult]]) -> Tuple[asyncio.Future, bool]:
        """
        진행 중인 작업이 있으면 그 작업을, 없으면 새로 시작한 작업을 돌려줍니다.

        Returns:
            (작업 핸들, 새로 시작했는지 여부)
        """
        with self._lock:
            if self._current is not None and not self._current.done():
                return self._current, False
            task = asyncio.ensure_future(operation())
            self._current = task
            task.add_done_callback(self._release)
            return task, True

    def _release(self, task: asyncio.Future) -> None:
        with self._lock:
            if self._current is task:
                self._current = None
        # 결과를 기다리던 호출자가 모두 취소된 경우 경고 로그 방지
        if not task.cancelled():
            task.exception()


# 프로세스 전역 동기화 슬롯
sync_coordinator = SyncCoordinator()


class RecruitmentSyncService:
    def __init__(
        self,
        source: RecruitmentSourceClient,
        session_factory: Callable[[], Session] = SessionLocal,
        page_size: Optional[int] = None,
        max_pages: Optional[int] = None,
        interval_minutes: Optional[int] = None,
        coordinator: Optional[SyncCoordinator] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.source = source
        self.session_factory = session_factory
        self.page_size = page_size or settings.sync_page_size
        self.max_pages = max_pages or settings.RECRUITMENT_SYNC_MAX_PAGES
        self.interval = timedelta(minutes=interval_minutes or settings.RECRUITMENT_SYNC_INTERVAL_MINUTES)
        self.coordinator = coordinator or sync_coordinator
        self.clock = clock

    async def perform_sync(self) -> RecruitmentSyncResult:
        """
        전체 공고 동기화 1회를 수행합니다.

        페이지 N의 저장이 끝난 뒤에 페이지 N+1을 요청합니다.
        도중에 외부 API 오류가 나면 이미 저장된 페이지는 유지하고,
        비활성화 단계는 실행하지 않은 채 예외를 그대로 올립니다.
        """
        sync_started_at = self.clock()
        sync_logger.info(f"채용공고 동기화 시작: page_size={self.page_size}, max_pages={self.max_pages}")

        page_no = 1
        total_fetched = 0
        inserted = 0
        updated = 0
        page_count = 0
        total_count = 0

        db = self.session_factory()
        try:
            while page_no <= self.max_pages:
                items, total_count = await self.source.fetch_list(page_no, self.page_size)
                page_count += 1

                if not items:
                    break

                page_inserted, page_updated = await anyio.to_thread.run_sync(
                    upsert_postings, db, items, sync_started_at
                )
                inserted += page_inserted
                updated += page_updated
                total_fetched += len(items)
                sync_logger.info(
                    f"페이지 {page_no} 저장 완료: 수신 {len(items)}건, 신규 {page_inserted}, 갱신 {page_updated}"
                )

                if total_count > 0 and total_fetched >= total_count:
                    break

                page_no += 1

            deactivated = await anyio.to_thread.run_sync(deactivate_unseen_postings, db, sync_started_at)
        except Exception as e:
            sync_logger.error(f"채용공고 동기화 실패: page={page_no}, 오류: {str(e)}")
            raise
        finally:
            db.close()

        invalidate_filter_options_cache()

        result = RecruitmentSyncResult(
            total_fetched=total_fetched,
            inserted=inserted,
            updated=updated,
            deactivated=deactivated,
            page_count=page_count,
            synced_at=sync_started_at,
        )
        sync_logger.info(
            f"채용공고 동기화 완료: 총 {total_fetched}건, 신규 {inserted}, 갱신 {updated}, "
            f"비활성화 {deactivated}, 페이지 {page_count}"
        )
        return result

    def _read_latest_seen_at(self) -> Optional[datetime]:
        db = self.session_factory()
        try:
            return get_latest_seen_at(db)
        finally:
            db.close()

    async def _is_fresh(self) -> bool:
        latest = await anyio.to_thread.run_sync(self._read_latest_seen_at)
        if latest is None:
            return False
        return self.clock() - latest < self.interval

    async def ensure_synced(self, force: bool = False) -> Optional[RecruitmentSyncResult]:
        """
        필요할 때만 동기화를 실행합니다.

        - force가 아니고 마지막 관측 이후 주기(기본 30분)가 지나지 않았으면 None
        - 이미 진행 중인 동기화가 있으면 새로 시작하지 않고 그 결과를 함께 기다림
        """
        if not force and await self._is_fresh():
            sync_logger.info("최근 동기화 이후 주기가 지나지 않아 동기화를 건너뜁니다.")
            return None

        task, started = self.coordinator.try_start(self.perform_sync)
        if not started:
            sync_logger.info("진행 중인 동기화 결과를 함께 기다립니다.")
        # 호출자 취소가 공유 작업을 취소하지 않도록 보호
        return await asyncio.shield(task)
