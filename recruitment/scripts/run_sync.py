#!/usr/bin/env python3
"""
채용공고 동기화 배치 스크립트
스케줄러와 별도로 크론 등에서 1회 동기화를 실행할 때 사용합니다.

사용법:
    python -m recruitment.scripts.run_sync [--force]
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime

from recruitment.database import Base, engine
from recruitment.models import RecruitmentPosting  # noqa: F401
from recruitment.utils.dependencies import get_sync_service

# 배치 전용 로거 설정
batch_logger = logging.getLogger("recruitment_sync_batch")
batch_logger.setLevel(logging.INFO)

def run_sync_batch(force: bool = False):
    """채용공고 동기화 배치 작업 실행. 최신 상태라 건너뛰면 None."""
    start_time = datetime.now()
    batch_logger.info(f"채용공고 동기화 배치 작업 시작: {start_time}")

    Base.metadata.create_all(bind=engine)
    try:
        result = asyncio.run(get_sync_service().ensure_synced(force=force))
    except Exception as e:
        batch_logger.error(f"배치 작업 실행 중 오류 발생: {str(e)}")
        raise

    duration = (datetime.now() - start_time).total_seconds()
    batch_logger.info(f"소요 시간: {duration:.2f}초")
    return result

def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="채용공고 동기화 1회 실행")
    parser.add_argument("--force", action="store_true", help="최근 동기화 여부와 관계없이 실행")
    args = parser.parse_args(argv)

    try:
        result = run_sync_batch(force=args.force)
    except Exception as e:
        print(f"배치 작업 실패: {str(e)}")
        return 1

    if result is None:
        print("최근에 동기화되어 건너뛰었습니다.")
    else:
        print(f"배치 작업 완료: 총 {result.total_fetched}건, 신규 {result.inserted}, "
              f"갱신 {result.updated}, 비활성화 {result.deactivated}")
    return 0

if __name__ == "__main__":
    sys.exit(main())
