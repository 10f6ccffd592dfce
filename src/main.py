import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.api.routers import users
from src.core.config import get_settings
from src.core.errors import AppError
from src.core.logging import logger
from src.core.responses import api_error
from src.db import engine
from src.models.basemodel import Base
from src.models import subscription, user, video  # noqa: F401  register tables

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info("Database ready")
    yield
    logger.info("Application shutdown")


app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGIN,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


READ_ONLY_METHODS = {"GET", "HEAD", "OPTIONS"}


@app.middleware("http")
async def request_timeout(request: Request, call_next):
    # Threadpool handlers cannot be cancelled, so a write would still commit after a 504.
    # Writes are bounded by UPLOAD_TIMEOUT and DB_TIMEOUT instead.
    if request.method not in READ_ONLY_METHODS:
        return await call_next(request)
    try:
        return await asyncio.wait_for(call_next(request), timeout=settings.REQUEST_TIMEOUT)
    except asyncio.TimeoutError:
        logger.error(f"Request {request.method} {request.url.path} timed out")
        return api_error(504, "Request timed out")


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return api_error(exc.status_code, exc.message, exc.errors)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(part) for part in err.get("loc", ())), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return api_error(400, "Invalid request", errors)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return api_error(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return api_error(500, "Internal Server Error")


app.include_router(users.router, prefix=settings.API_PREFIX)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("src.main:app", host="0.0.0.0", port=settings.PORT)
