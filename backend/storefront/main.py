"""FastAPI application entrypoint.

This module builds the application: logging, CORS, the request context
middleware, the media file mount and the routers. Controllers live in
`storefront.routers` and are intentionally thin: they check
permissions, delegate to services, and return JSON responses.

Endpoints implemented:
- POST /auth/register, POST /auth/login, POST /auth/token, GET /auth/me
- GET /api
- GET, POST /api/products
- GET, PUT, PATCH, DELETE /api/products/{id}
- POST, DELETE /api/products/{id}/image
- GET /api/users, GET /api/users/{id}
- GET /health
"""

from fastapi import FastAPI, Request
from fastapi.responses import RedirectResponse, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
import json
import logging
import time
import uuid

from .config import settings
from .database import create_db_and_tables
from .routers import api_router, auth_router

app = FastAPI(title="Storefront API")
logger = logging.getLogger("storefront.api")
if not logger.handlers:
    logging.basicConfig(level=settings.LOG_LEVEL)

if settings.ALLOW_DEV_CORS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

settings.MEDIA_ROOT.mkdir(parents=True, exist_ok=True)
app.mount(settings.MEDIA_URL, StaticFiles(directory=settings.MEDIA_ROOT), name="media")

create_db_and_tables()

app.include_router(auth_router)
app.include_router(api_router)


def _request_log(request: Request, req_id: str, started: float, **extra) -> str:
    return json.dumps(
        {
            "request_id": req_id,
            "path": request.url.path,
            "method": request.method,
            "duration_ms": round((time.perf_counter() - started) * 1000.0, 2),
            "client": request.client.host if request.client else "unknown",
            **extra,
        },
        ensure_ascii=True,
    )


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
    request.state.request_id = req_id
    started = time.perf_counter()
    response: Response
    try:
        response = await call_next(request)
    except Exception:
        logger.exception("request_failed %s", _request_log(request, req_id, started))
        raise
    response.headers["X-Request-ID"] = req_id
    logger.info("request_done %s", _request_log(request, req_id, started, status_code=response.status_code))
    return response


@app.get("/", include_in_schema=False)
def home():
    """Send browsers to the interactive API docs."""
    return RedirectResponse(url="/docs")


@app.get("/health")
def health():
    """Lightweight health check for uptime monitoring."""
    return {"status": "ok"}
