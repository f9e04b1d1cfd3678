from speakr_query.routes.health import router as health_router
from speakr_query.routes.query import router as query_router

__all__ = ["health_router", "query_router"]
