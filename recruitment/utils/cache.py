import logging
from datetime import datetime, timedelta
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

class CacheManager:
    """프로세스 내 TTL 캐시 관리자"""

    def __init__(self, default_ttl: timedelta = timedelta(minutes=5)):
        self.caches: Dict[str, Dict[str, Any]] = {}
        self.default_ttl = default_ttl

    def get_cache(self, cache_name: str) -> Dict[str, Any]:
        """캐시 딕셔너리를 가져오거나 생성"""
        if cache_name not in self.caches:
            self.caches[cache_name] = {}
        return self.caches[cache_name]

    def generate_cache_key(self, cache_name: str, *args, **kwargs) -> str:
        """캐시 키 생성"""
        key_parts = [cache_name]

        for arg in args:
            key_parts.append(str(arg))

        # 키워드 인자들을 정렬하여 추가
        for key, value in sorted(kwargs.items()):
            key_parts.append(f"{key}:{value}")

        return ":".join(key_parts)

    def is_cache_valid(self, cache_entry: Optional[Dict[str, Any]], ttl: Optional[timedelta] = None) -> bool:
        """캐시가 유효한지 확인"""
        if not cache_entry:
            return False

        created_time = cache_entry.get('created_time')
        if not created_time:
            return False

        cache_ttl = ttl or cache_entry.get('ttl') or self.default_ttl
        return datetime.now() - created_time < cache_ttl

    def get_cached_data(self, cache_name: str, cache_key: str, ttl: Optional[timedelta] = None) -> Optional[Any]:
        """캐시된 데이터 조회"""
        cache = self.get_cache(cache_name)
        cached_result = cache.get(cache_key)

        if self.is_cache_valid(cached_result, ttl):
            logger.info(f"캐시 히트: {cache_name}:{cache_key}")
            return cached_result.get('data')

        return None

    def set_cached_data(self, cache_name: str, cache_key: str, data: Any, ttl: Optional[timedelta] = None) -> None:
        """데이터를 캐시에 저장"""
        cache = self.get_cache(cache_name)
        cache[cache_key] = {
            'data': data,
            'created_time': datetime.now(),
            'ttl': ttl or self.default_ttl
        }
        logger.info(f"캐시 저장: {cache_name}:{cache_key}")

    def clear_cache(self, cache_name: str) -> int:
        """특정 캐시 전체 삭제"""
        cache = self.get_cache(cache_name)
        deleted_count = len(cache)
        cache.clear()
        logger.info(f"캐시 삭제 완료: {cache_name}, 삭제된 캐시 수: {deleted_count}")
        return deleted_count

# 전역 캐시 매니저 인스턴스
cache_manager = CacheManager()
