from fastapi import APIRouter
from recruitment.services.scheduler import get_scheduler_status

router = APIRouter(prefix="/scheduler", tags=["Scheduler"])

@router.get(
    "/status",
    summary="스케줄러 상태 조회",
    description="현재 스케줄러의 상태와 등록된 동기화 작업을 조회합니다."
)
def get_status():
    """스케줄러 상태 조회"""
    return get_scheduler_status()
