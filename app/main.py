import logging
from datetime import datetime
from datetime import timezone

from fastapi import Depends
from fastapi import FastAPI
from fastapi import Request
from fastapi import status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.routes import router
from app.core.config import settings
from app.core.database import Database
from app.core.database import DatabaseError
from app.core.database import get_database
from app.core.exceptions import ApiError
from app.core.logging import setup_logging

setup_logging()

app = FastAPI(title="Campus Dashboard Proxy")
app.state.db = Database(settings)

logger = logging.getLogger(__name__)


def error_body(message: str, error: str | None = None) -> dict:
    body: dict = {"success": False, "message": message}
    if error and not settings.is_production:
        body["error"] = error
    return body


@app.on_event("startup")
async def startup_event() -> None:
    try:
        await app.state.db.connect()
    except Exception as e:
        # Queries retry the connection lazily, so the API still boots.
        logger.error("Database pool could not be created at startup: %s", e, exc_info=True)
    logger.info("Application started (environment=%s)", settings.environment)


@app.on_event("shutdown")
async def shutdown_event() -> None:
    await app.state.db.close()


@app.exception_handler(ApiError)
async def api_error_handler(_request: Request, exc: ApiError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("API error %d: %s (%s)", exc.status_code, exc.message, exc.error)
    else:
        logger.info("API error %d: %s", exc.status_code, exc.message)
    return JSONResponse(error_body(exc.message, exc.error), status_code=exc.status_code)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    logger.error(f"HTTP exception: {exc.detail} (status: {exc.status_code})")
    return JSONResponse(error_body(str(exc.detail)), status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.error("Request validation failed: %s", exc.errors(), exc_info=False)
    body = error_body("입력값이 올바르지 않습니다.")
    body["details"] = jsonable_errors(exc)
    return JSONResponse(body, status_code=status.HTTP_400_BAD_REQUEST)


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [{"loc": list(e.get("loc", ())), "msg": e.get("msg", ""), "type": e.get("type", "")} for e in exc.errors()]


@app.get("/health", status_code=status.HTTP_200_OK, tags=["Health"])
async def health_check(request: Request) -> dict[str, str | None]:
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "ip": request.client.host if request.client else None,
        "userAgent": request.headers.get("user-agent"),
    }


@app.get("/db-test", tags=["Health"])
async def db_test(db: Database = Depends(get_database)) -> JSONResponse:
    try:
        rows = await db.fetch_all("SELECT 1 AS test")
    except DatabaseError as e:
        logger.error("Database connection error: %s", e)
        return JSONResponse(
            {"success": False, "message": "Database connection failed", "error": str(e)},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    return JSONResponse(
        {
            "success": True,
            "message": "Database connection successful",
            "data": rows,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_methods=["POST", "GET", "OPTIONS"],
    allow_headers=["*"],
)
app.include_router(router)
