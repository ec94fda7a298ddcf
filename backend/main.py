"""
FastAPI 主入口
Loopyter API: Session / Run 持久化 + AI Gateway
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from db.database import init_db
from logging_config import setup_logging
from routers import ai, runs, sessions
from services.errors import ApiError

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Loopyter API",
    description="AI notebook 配套 API",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# 启动时配置日志并创建数据库表
@app.on_event("startup")
def on_startup():
    setup_logging(settings.log_level, settings.log_file)
    init_db()
    logger.info("Loopyter API started (prefix=%s)", settings.api_prefix)


# ---- 统一错误信封 {"error": {"message", "code"}} ----

@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    if exc.status_code >= 500:
        logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_envelope())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"Invalid request: {location} {first.get('msg', '')}".strip()
    return JSONResponse(
        status_code=400,
        content={"error": {"message": message, "code": "VALIDATION_ERROR"}},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": {"message": "Internal server error", "code": "INTERNAL_ERROR"}},
    )


app.include_router(sessions.router, prefix=f"{settings.api_prefix}/sessions", tags=["Sessions"])
app.include_router(runs.router, prefix=f"{settings.api_prefix}/runs", tags=["Runs"])
app.include_router(ai.router, prefix=f"{settings.api_prefix}/ai", tags=["AI"])


@app.get("/")
async def root():
    return {"message": "Loopyter API", "version": "1.0.0", "status": "running"}


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
