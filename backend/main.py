from fastapi import FastAPI, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response, JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy.orm import Session
from sqlalchemy import text
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional
import logging, time, uvicorn

# Import our modules
from app.core.config import (
    APP_NAME, APP_VERSION, CORS_ALLOW_ORIGINS, CREATE_TABLES_ON_STARTUP, LOG_LEVEL,
)
from app.core.database import Database, get_db
from app.core.errors import InvalidInputError, NotFoundError
from app.models.request import ItemRequest
from app.api.requests import router as requests_router
from app.metrics import init_metrics_zero, request_latency_seconds

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("backend")


def create_app(database: Optional[Database] = None) -> FastAPI:
    database = database or Database()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            database.connect()
            if CREATE_TABLES_ON_STARTUP:
                database.create_all()
                logger.info("[startup] tables ready")
        except Exception:
            # get_db retries the connection on the next request
            logger.exception("[startup] database not ready")
        init_metrics_zero()
        yield
        database.dispose()

    app = FastAPI(
        title="Item Request Tracker API",
        description="Item requests with paginated listing and batch status/delete",
        version=APP_VERSION,
        lifespan=lifespan,
    )
    app.state.database = database

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ALLOW_ORIGINS, allow_credentials=True,
        allow_methods=["*"], allow_headers=["*"],
    )

    @app.middleware("http")
    async def time_requests(request: Request, call_next):
        started = time.perf_counter()
        try:
            return await call_next(request)
        finally:
            request_latency_seconds.labels(method=request.method).observe(time.perf_counter() - started)

    @app.exception_handler(InvalidInputError)
    async def invalid_input_handler(request: Request, exc: InvalidInputError):
        logger.info("[request] %s %s rejected: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(Exception)
    async def unknown_error_handler(request: Request, exc: Exception):
        # Starlette re-raises after this response, so the server logs the traceback
        return JSONResponse(status_code=500, content={"detail": "Unknown error"})

    app.include_router(requests_router)

    @app.get("/health")
    def health_check(db: Session = Depends(get_db)):
        try:
            db.execute(text("SELECT 1"))
            return {
                "status": "healthy",
                "database": "connected",
                "requests_count": db.query(ItemRequest).count(),
                "timestamp": datetime.now(timezone.utc),
            }
        except Exception as e:
            logger.warning("[health] database check failed: %s", e)
            return JSONResponse(status_code=503, content={
                "status": "unhealthy",
                "database": "disconnected",
                "error": str(e),
                "timestamp": datetime.now(timezone.utc).isoformat(),
            })

    @app.get("/metrics")
    def metrics():
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.get("/public/version", include_in_schema=False)
    def public_version():
        return {"name": APP_NAME, "version": APP_VERSION}

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
