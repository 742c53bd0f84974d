from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn
import logging
from contextlib import asynccontextmanager
from typing import Optional

from campus_attendance.core.config import settings
from campus_attendance.core.database import AsyncSessionLocal, init_db
from campus_attendance.core.logging_config import configure_logging
from campus_attendance.container import Container, build_container
from campus_attendance.services.cache.backends import RedisCacheBackend
from campus_attendance.api.v1 import analytics, attendance

logger = logging.getLogger(__name__)


def create_app(container: Optional[Container] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "container", None) is None:
            configure_logging()
            await init_db()
            app.state.container = build_container(AsyncSessionLocal)
            logger.info(f"{settings.APP_NAME} started")

        yield

        backend = app.state.container.cache.backend
        if isinstance(backend, RedisCacheBackend):
            await backend.close()

    app = FastAPI(
        title="Campus Attendance Analytics API",
        description="Cached attendance overview and marking endpoints",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include API routers
    app.include_router(analytics.router, prefix="/api/v1")
    app.include_router(attendance.router, prefix="/api/v1")

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "version": "1.0.0"}

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request, exc):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail, "status_code": exc.status_code}
        )

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "campus_attendance.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )
