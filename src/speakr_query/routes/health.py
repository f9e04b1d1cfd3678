from fastapi import APIRouter

from speakr_query.response_models import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health():
    """Liveness check."""
    return HealthResponse()
