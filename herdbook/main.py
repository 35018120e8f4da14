"""
FastAPI application factory
"""
import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from herdbook.config import get_settings
from herdbook.infrastructure.db.session import check_db_connection
from herdbook.infrastructure.store import StoreUnavailable
from herdbook.api.v1 import cattle, events

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """
    Application factory - builds and configures the FastAPI app

    Returns:
        Configured FastAPI app
    """
    settings = get_settings()

    app = FastAPI(
        title="Herdbook",
        debug=settings.DEBUG,
    )

    # Error-logging middleware, catches exceptions from sync routes too
    from starlette.middleware.base import BaseHTTPMiddleware
    from starlette.responses import Response

    class ErrorLoggingMiddleware(BaseHTTPMiddleware):
        async def dispatch(self, request, call_next):
            try:
                response = await call_next(request)
                return response
            except Exception as exc:
                tb_str = traceback.format_exc()
                logger.error(f"\n{'='*60}\nERROR on {request.method} {request.url.path}\n{tb_str}{'='*60}")
                return Response(content=f"Internal Server Error: {exc}", status_code=500)

    app.add_middleware(ErrorLoggingMiddleware)

    @app.exception_handler(StoreUnavailable)
    async def store_unavailable(request: Request, exc: StoreUnavailable):
        logger.warning("Store unavailable on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=503, content={"detail": "Store unavailable, try again later"})

    # Routers
    app.include_router(cattle.router)
    app.include_router(events.router)

    # Health checks
    @app.get("/health", response_class=PlainTextResponse, tags=["system"])
    def health():
        """Health check endpoint"""
        return "ok"

    @app.get("/ready", response_class=PlainTextResponse, tags=["system"])
    def ready():
        """Readiness check endpoint (database reachable)"""
        check_db_connection()
        return "ok"

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "herdbook.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
