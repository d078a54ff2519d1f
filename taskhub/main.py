# taskhub/main.py

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import os
import logging

# Роутеры
from taskhub.api.activity_log import router as activity_log_router
from taskhub.api.auth import router as auth_router
from taskhub.api.notification import router as notification_router
from taskhub.api.project import router as project_router
from taskhub.api.tag import router as tag_router
from taskhub.api.task import router as task_router
from taskhub.api.user import router as user_router
from taskhub.api.websocket import router as websocket_router

from taskhub.core.settings import settings
from taskhub.core.exceptions import BaseAppException, AuthError, ConfigurationError
from taskhub.database import engine
from taskhub.models.base import Base
import taskhub.models  # noqa: F401  (регистрирует все модели в Base.metadata)
from taskhub.schemas.response import ErrorDetail, ErrorResponse

# Логирование
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger("TaskHub")

app = FastAPI(
    title="TaskHub API",
    version="1.0.0",
    description="Multi-user task/project management backend with real-time updates",
)

# Middlewares
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Роутеры
app.include_router(auth_router)
app.include_router(user_router)
app.include_router(project_router)
app.include_router(task_router)
app.include_router(tag_router)
app.include_router(notification_router)
app.include_router(activity_log_router)
app.include_router(websocket_router)

@app.get("/health", tags=["Health"])
def health():
    return {"ok": True}

@app.on_event("startup")
def startup_event():
    if not settings.SECRET_KEY.strip():
        logger.critical("SECRET_KEY is not set; refusing to start")
        raise ConfigurationError("SECRET_KEY must be set")
    Base.metadata.create_all(bind=engine)
    logger.info("Starting TaskHub API")

@app.on_event("shutdown")
def shutdown_event():
    logger.info("Stopping TaskHub API")

# ==== Exception handlers: единый формат {"error": {code, message, details}} ====

def error_response(status_code: int, code: str, message: str, details=None, headers=None) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message, details=details))
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)

@app.exception_handler(BaseAppException)
async def app_exception_handler(request: Request, exc: BaseAppException):
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    if exc.status_code >= 500:
        logger.error(f"{exc.kind} on {request.method} {request.url.path}: {exc.message}")
    return error_response(exc.status_code, exc.kind, exc.message, exc.details, headers)

@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    details = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())[1:]) or None,
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    return error_response(400, "VALIDATION", "Validation failed.", details)

HTTP_STATUS_KINDS = {
    401: "UNAUTHENTICATED",
    403: "FORBIDDEN",
    404: "NOT_FOUND_OR_FORBIDDEN",
}

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    kind = HTTP_STATUS_KINDS.get(exc.status_code, "INTERNAL" if exc.status_code >= 500 else "HTTP_ERROR")
    return error_response(exc.status_code, kind, str(exc.detail), headers=getattr(exc, "headers", None))

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return error_response(500, "INTERNAL", "Internal server error")

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "taskhub.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=settings.DEBUG,
    )
