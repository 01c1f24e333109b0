from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# Core
from core.activity_log import log_activity
from core.config import settings
from core.context import AppContext, create_context
from core.errors import AppError
from core.logging_config import logger
from models.enums import LogCategory

# -------------------------------------------------
# Routers
# -------------------------------------------------
from routers.auth import router as auth_router
from routers.domains import router as domains_router
from routers.roles import router as roles_router

from routers.tasks import router as tasks_router
from routers.suggestions import router as suggestions_router
from routers.announcements import router as announcements_router
from routers.documentation import router as documentation_router
from routers.uploads import router as uploads_router

from routers.logs import router as logs_router
from routers.leaderboard import router as leaderboard_router
from routers.team import router as team_router
from routers.site_status import router as site_status_router
from routers.realtime import router as realtime_router
from routers.health import router as health_router


def _first_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    err = errors[0]
    field = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path"))
    if err.get("type") == "missing":
        return f"Missing required field: {field}"
    return f"{field}: {err.get('msg')}" if field else err.get("msg", "Invalid request")


# -------------------------------------------------
# Create the Application
# -------------------------------------------------
def create_app(context: Optional[AppContext] = None) -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="1.0.0",
        description="TaskMaster API: role-based task management",
    )

    # One context per process; handlers reach it through get_context
    app.state.context = context or create_context(settings)

    # -------------------------------------------------
    # CORS
    # -------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------
    # Lifecycle
    # -------------------------------------------------
    @app.on_event("startup")
    async def on_startup():
        logger.info(f"Starting {settings.PROJECT_NAME} ({settings.ENV})")
        for route in app.routes:
            methods = ",".join(getattr(route, "methods", None) or [])
            logger.debug(f"{methods:10s} {getattr(route, 'path', '')}")

    @app.on_event("shutdown")
    async def on_shutdown():
        app.state.context.close()

    # -------------------------------------------------
    # Error handling
    # -------------------------------------------------
    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"{type(exc).__name__} at {request.url} — {exc.message}")
        elif exc.status_code in (401, 403):
            logger.warning(f"HTTP {exc.status_code} at {request.url} — {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(RequestValidationError)
    async def handle_validation(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"detail": _first_error(exc)})

    @app.exception_handler(StarletteHTTPException)
    async def handle_http(request: Request, exc: StarletteHTTPException):
        if exc.status_code in (401, 403, 500):
            logger.warning(
                f"HTTP {exc.status_code} at {request.url} — {exc.detail}"
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unhandled(request: Request, exc: Exception):
        logger.error("Unhandled error at %s", request.url, exc_info=exc)
        log_activity(
            app.state.context.store,
            f"Unhandled error on {request.method} {request.url.path}: {exc}",
            LogCategory.error,
            None,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    # -------------------------------------------------
    # Register Routers
    # -------------------------------------------------

    # Auth & access control
    app.include_router(auth_router)
    app.include_router(domains_router)
    app.include_router(roles_router)

    # Work items
    app.include_router(tasks_router)
    app.include_router(suggestions_router)
    app.include_router(announcements_router)
    app.include_router(documentation_router)
    app.include_router(uploads_router)

    # Dashboards
    app.include_router(logs_router)
    app.include_router(leaderboard_router)
    app.include_router(team_router)
    app.include_router(site_status_router)
    app.include_router(realtime_router)

    # Health
    app.include_router(health_router)

    return app


app = create_app()
