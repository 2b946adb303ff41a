# 모델들을 등록하기 위한 import (순환 import 방지)
# 각 모델 파일에서 Base를 import하여 자동으로 등록됨
from .recruitment_posting import RecruitmentPosting
from .access_code import AccessCode

__all__ = [
    "RecruitmentPosting",
    "AccessCode",
]
