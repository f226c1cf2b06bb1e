"""Main FastAPI application for the BizPilot backend."""
from typing import Optional
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from bizpilot import __version__
from bizpilot.config import Settings
from bizpilot.errors import CopilotError, error_payload
from bizpilot.middleware.cors import add_cors_middleware
from bizpilot.routers import auth, chat, tasks
from bizpilot.runtime import Runtime, build_runtime

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logger = logging.getLogger(__name__)


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)


def create_app(settings: Optional[Settings] = None, runtime: Optional[Runtime] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Configuration; read from the environment when omitted
        runtime: Prebuilt collaborators; built at startup when omitted
    """
    settings = settings or (runtime.settings if runtime else Settings.from_env())

    app = FastAPI(
        title="BizPilot API",
        description="AI business copilot for SMB owners: chat, document analysis and tasks",
        version=__version__,
    )
    app.state.settings = settings
    app.state.runtime = runtime

    add_cors_middleware(app, settings)

    @app.on_event("startup")
    async def startup_event():
        """Decide the storage backend and wire collaborators."""
        logger.info(f"Configuration: {settings.describe()}")
        if app.state.runtime is None:
            app.state.runtime = build_runtime(settings)
        logger.info("Application startup complete.")

    @app.exception_handler(CopilotError)
    async def copilot_error_handler(request: Request, exc: CopilotError):
        return JSONResponse(status_code=exc.status_code, content=error_payload(exc))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"ok": True}

    app.include_router(auth.router, prefix="/api")
    app.include_router(chat.router, prefix="/api")
    app.include_router(tasks.router, prefix="/api")

    return app


configure_logging()
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "bizpilot.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
