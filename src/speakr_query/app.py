"""FastAPI application factory."""

from fastapi import FastAPI, Request

from speakr_common.context import new_correlation_id
from speakr_common.logging import setup_logging

from speakr_query.dependencies import CORRELATION_ID_HTTP_HEADER
from speakr_query.routes import health_router, query_router

logger = setup_logging()


def create_app() -> FastAPI:
    app = FastAPI(title="Speakr Query API")

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next):
        correlation_id = request.headers.get(CORRELATION_ID_HTTP_HEADER) or new_correlation_id()
        request.state.correlation_id = correlation_id
        response = await call_next(request)
        response.headers[CORRELATION_ID_HTTP_HEADER] = correlation_id
        return response

    app.include_router(health_router)
    app.include_router(query_router)
    return app
