"""FastAPI application exposing the dashboard analytics API."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from qrmenu.api.routes.analytics import router as analytics_router
from qrmenu.config.settings import APP_ENV, FRONTEND_URL

app = FastAPI(title="QR Menu Analytics")
logger = logging.getLogger(__name__)

LOCAL_ORIGIN_PATTERN = r"https?://(localhost|127\.0\.0\.1)(:\d+)?|https://[\w-]+\.trycloudflare\.com"

app.add_middleware(
    CORSMiddleware,
    allow_origins=[FRONTEND_URL] if FRONTEND_URL else [],
    allow_origin_regex=LOCAL_ORIGIN_PATTERN,
    allow_credentials=True,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

app.include_router(analytics_router, prefix="/api/analytics", tags=["Analytics"])


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail
    if exc.status_code == 404 and message == "Not Found":
        message = f"Route not found: {request.method} {request.url.path}"
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": message},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = f"Invalid {location}: {first.get('msg')}" if location else "Invalid request"
    return JSONResponse(
        status_code=422,
        content={"success": False, "message": message, "errors": jsonable_encoder(errors)},
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    content: Dict[str, Any] = {"success": False, "message": "Something went wrong!"}
    if APP_ENV == "development":
        content["error"] = str(exc)
    return JSONResponse(status_code=500, content=content)


@app.get("/")
def read_root() -> Dict[str, Any]:
    return {
        "success": True,
        "message": "QR Menu Analytics API",
        "endpoints": {
            "health": "/api/health",
            "dashboard": "/api/analytics/dashboard",
            "ordersOverTime": "/api/analytics/orders-over-time",
            "popularHours": "/api/analytics/popular-hours",
            "recentActivity": "/api/analytics/recent-activity",
        },
    }


@app.get("/api/health")
def health() -> Dict[str, str]:
    return {
        "status": "OK",
        "message": "QR Menu Analytics API is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": APP_ENV,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("qrmenu.main:app", host="127.0.0.1", port=8000, reload=True)
