from sqlalchemy import Column, Integer, String, JSON, DateTime
from sqlalchemy.sql import func
from recruitment.database.PostgreSQL import Base

class AccessCode(Base):
    __tablename__ = "access_codes"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(64), unique=True, nullable=False, index=True)  # 인증번호
    payload = Column(JSON, nullable=False, default=dict)  # 저장된 이력서/자기소개서 (resume, coverLetter)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
