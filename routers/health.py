# routers/health.py

from fastapi import APIRouter, Depends

from core.context import AppContext, get_context

router = APIRouter(
    prefix="/health",
    tags=["Health"],
)


# -----------------------------------------------------
# GET /health/db
# Checks store connectivity
# No auth required
# -----------------------------------------------------
@router.get("/db", summary="Store health check")
def health_db(ctx: AppContext = Depends(get_context)):
    """
    Pings the configured document store.
    Safe for external health monitors (no auth required).
    """
    try:
        status = ctx.store.ping()
        return {
            "service": status.get("service", type(ctx.store).__name__),
            "status": status.get("status", "unknown"),
            "details": status,
        }

    except Exception as e:
        return {
            "service": type(ctx.store).__name__,
            "status": "error",
            "error": str(e),
        }


# -----------------------------------------------------
# GET /health/app
# Simple API health check for uptime monitors
# -----------------------------------------------------
@router.get("/app", summary="App health check")
async def health_app():
    return {
        "service": "TaskMaster API",
        "status": "ok",
    }
