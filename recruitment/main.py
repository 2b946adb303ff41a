from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from recruitment.config import settings
from recruitment.database import Base, engine
from recruitment.models import RecruitmentPosting, AccessCode  # noqa: F401 (테이블 등록)
from recruitment.services.scheduler import start_scheduler, stop_scheduler
from recruitment.routers import recruitment, scheduler
from recruitment.utils.exceptions import (
    AppException,
    ConfigurationError,
    UpstreamError,
    create_error_response,
)
from recruitment.utils.logger import app_logger

# 앱 시작 시 테이블 생성 및 동기화 스케줄러 시작
@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    start_scheduler()
    yield
    stop_scheduler()

# FastAPI 앱 생성
app = FastAPI(
    title="Recruitment Match API",
    lifespan=lifespan
)

@app.get("/")
async def root():
    """API 루트 경로"""
    return {
        "message": "Recruitment Match API",
        "version": "1.0.0",
        "docs": "/docs",
    }

@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.status_code, exc.detail, exc.error_code, exc.extra_data),
    )

@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    app_logger.error(f"설정 오류: {request.method} {request.url.path} - {str(exc)}")
    return JSONResponse(
        status_code=500,
        content=create_error_response(500, "서버 설정 오류가 발생했습니다.", "CONFIGURATION_ERROR"),
    )

@app.exception_handler(UpstreamError)
async def upstream_error_handler(request: Request, exc: UpstreamError):
    app_logger.error(
        f"외부 API 오류: {request.method} {request.url.path} - {str(exc)} "
        f"(status={exc.status_code}, body={exc.body[:500]})"
    )
    return JSONResponse(
        status_code=502,
        content=create_error_response(502, "외부 채용정보 서비스 오류가 발생했습니다.", "UPSTREAM_ERROR"),
    )

# CORS 설정
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 라우터 등록
app.include_router(recruitment.router)
app.include_router(scheduler.router)

def run():
    """API 서버 실행 (recruitment-server)"""
    import uvicorn
    uvicorn.run(
        "recruitment.main:app",
        host=settings.FASTAPI_SERVER_HOST,
        port=settings.FASTAPI_SERVER_PORT,
    )

if __name__ == "__main__":
    run()
