"""
FastAPI application initialization for the auto-join API.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from zoom_autojoin.config import settings
from zoom_autojoin.api.v1.router import api_router

# Create FastAPI application
app = FastAPI(
    title=settings.project_name,
    version=settings.version,
    description="Opens Zoom web client meetings and clicks through the join flow",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(api_router, prefix="/api/v1")


@app.on_event("startup")
async def startup_event():
    """
    Application startup event.
    The browser itself is launched lazily on the first join.
    """
    from zoom_autojoin.meeting_handler import ZoomAutoJoiner
    from zoom_autojoin.core.dependencies import set_joiner_instance
    from zoom_autojoin.core.logging import get_logger

    logger = get_logger("startup")
    logger.info("Starting auto-join API...")
    set_joiner_instance(ZoomAutoJoiner())


@app.on_event("shutdown")
async def shutdown_event():
    """
    Application shutdown event.
    Leave every meeting and close the browser.
    """
    from zoom_autojoin.core.dependencies import get_joiner, set_joiner_instance
    from fastapi import HTTPException
    from zoom_autojoin.core.exceptions import AutoJoinException
    from zoom_autojoin.core.logging import get_logger

    logger = get_logger("shutdown")
    logger.info("Shutting down auto-join API...")

    try:
        joiner = await get_joiner()
        await joiner.stop()
    except HTTPException:
        logger.warning("Auto-joiner was never initialized")
    except AutoJoinException as e:
        logger.warning(f"Auto-joiner did not stop cleanly: {e.message}")
    finally:
        set_joiner_instance(None)

    logger.info("Auto-join API shutdown complete")


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - redirect to API docs.
    """
    from fastapi.responses import RedirectResponse
    return RedirectResponse(url="/api/docs")
