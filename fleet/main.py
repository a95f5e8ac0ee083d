import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError

from fleet.config import settings
from fleet.database import check_db_connection, init_db
from fleet.schemas.common import ERROR_RESPONSES
from fleet.utils.exceptions import AppException
from fleet.middleware.error_handler import (
    app_exception_handler,
    validation_exception_handler,
    integrity_error_handler,
    generic_exception_handler,
)

from fleet.api.v1 import vehicles
from fleet.api.v1 import users
from fleet.api.v1 import driver_assignments
from fleet.api.v1 import maintenance
from fleet.api.v1 import trips
from fleet.api.v1 import dashboard
from fleet.api.v1 import reports

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    ok = check_db_connection()
    logger.info("DB connected" if ok else "DB connection FAILED")
    if ok:
        init_db()
    yield
    logger.info("Shutting down %s", settings.APP_NAME)


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        version=VERSION,
        description="Fleet management API: vehicles, drivers, assignments, maintenance and trips",
        debug=settings.APP_DEBUG,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ─── CORS ─────────────────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ─── Exception Handlers ───────────────────────────────────────────────────
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    # ─── Routers ──────────────────────────────────────────────────────────────
    PREFIX = "/api/v1"
    app.include_router(vehicles.router,           prefix=PREFIX, tags=["Vehicles"], responses=ERROR_RESPONSES)
    app.include_router(users.router,              prefix=PREFIX, tags=["Users"], responses=ERROR_RESPONSES)
    app.include_router(driver_assignments.router, prefix=PREFIX, tags=["Driver Assignments"], responses=ERROR_RESPONSES)
    app.include_router(maintenance.router,        prefix=PREFIX, tags=["Maintenance"], responses=ERROR_RESPONSES)
    app.include_router(trips.router,              prefix=PREFIX, tags=["Trips"], responses=ERROR_RESPONSES)
    app.include_router(dashboard.router,          prefix=PREFIX, tags=["Dashboard"], responses=ERROR_RESPONSES)
    app.include_router(reports.router,            prefix=PREFIX, tags=["Reports"], responses=ERROR_RESPONSES)

    # ─── Health ───────────────────────────────────────────────────────────────
    @app.get("/health", tags=["Health"])
    def health():
        return {"status": "ok", "app": settings.APP_NAME, "version": VERSION}

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("fleet.main:app", host=settings.APP_HOST, port=settings.APP_PORT,
                reload=settings.is_development)
