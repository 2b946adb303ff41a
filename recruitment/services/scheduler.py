"""
FastAPI 애플리케이션 내 스케줄러 서비스
설정된 주기(기본 30분)마다 채용공고 동기화를 실행합니다.
"""

from datetime import datetime, timezone
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from recruitment.config import settings
from recruitment.utils.dependencies import get_sync_service
from recruitment.utils.logger import sync_logger

# 전역 스케줄러 인스턴스
scheduler = AsyncIOScheduler()

async def run_recruitment_sync_job():
    """주기적으로 실행되는 채용공고 동기화 작업 (최근에 동기화됐으면 건너뜀)"""
    try:
        sync_logger.info("스케줄된 채용공고 동기화 작업 시작")
        result = await get_sync_service().ensure_synced(force=False)

        if result is None:
            sync_logger.info("스케줄된 동기화 작업: 최신 상태라 건너뜀")
            return

        sync_logger.info(f"스케줄된 동기화 작업 완료: "
                         f"총 {result.total_fetched}건, "
                         f"신규 {result.inserted}, "
                         f"갱신 {result.updated}, "
                         f"비활성화 {result.deactivated}")

    except Exception as e:
        sync_logger.error(f"스케줄된 동기화 작업 실행 중 오류: {str(e)}")

def start_scheduler():
    """스케줄러 시작"""
    # 테스트 환경에서는 스케줄러 자동 실행 비활성화
    if settings.DISABLE_SCHEDULER:
        sync_logger.info("스케줄러가 비활성화되어 있습니다. (DISABLE_SCHEDULER=true)")
        return

    if scheduler.running:
        sync_logger.info("스케줄러가 이미 실행 중입니다.")
        return

    try:
        # 앱 시작 직후 1회 실행 후 주기적으로 반복
        scheduler.add_job(
            run_recruitment_sync_job,
            IntervalTrigger(minutes=settings.RECRUITMENT_SYNC_INTERVAL_MINUTES),
            id='recruitment_sync',
            name='채용공고 동기화',
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            next_run_time=datetime.now(timezone.utc),
        )

        scheduler.start()
        sync_logger.info(f"스케줄러가 시작되었습니다. {settings.RECRUITMENT_SYNC_INTERVAL_MINUTES}분마다 채용공고 동기화가 실행됩니다.")

    except Exception as e:
        sync_logger.error(f"스케줄러 시작 실패: {str(e)}")
        raise

def stop_scheduler():
    """스케줄러 중지"""
    if not scheduler.running:
        return

    try:
        scheduler.shutdown()
        sync_logger.info("스케줄러가 중지되었습니다.")
    except Exception as e:
        sync_logger.error(f"스케줄러 중지 실패: {str(e)}")

def get_scheduler_status():
    """스케줄러 상태 조회"""
    return {
        "running": scheduler.running,
        "jobs": [
            {
                "id": job.id,
                "name": job.name,
                "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
                "trigger": str(job.trigger)
            }
            for job in scheduler.get_jobs()
        ]
    }
