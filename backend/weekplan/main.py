from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from weekplan.api.routes import admin, health, schedules, settings as settings_routes, students
from weekplan.core.config import get_settings
from weekplan.core.exceptions import AppError
from weekplan.core.middleware import RequestLoggingMiddleware, RequestSizeLimitMiddleware
from weekplan.db.bootstrap import ensure_runtime_schema_compatibility

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    ensure_runtime_schema_compatibility()
    logger.info(
        "%s ready; business window %02d:00-%02d:00",
        settings.project_name,
        settings.business_day_start_hour,
        settings.business_day_end_hour,
    )
    yield


async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "details": exc.details},
    )


app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)

app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.max_request_size_bytes)
if settings.log_requests:
    app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(students.router, prefix=settings.api_prefix, tags=["students"])
app.include_router(settings_routes.router, prefix=settings.api_prefix, tags=["settings"])
app.include_router(schedules.router, prefix=f"{settings.api_prefix}/student", tags=["schedules"])
app.include_router(admin.router, prefix=f"{settings.api_prefix}/admin", tags=["admin"])
