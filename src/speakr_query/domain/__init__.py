from speakr_query.domain.query_orchestrator import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    QueryOrchestrator,
)

__all__ = ["DEFAULT_LIMIT", "MAX_LIMIT", "QueryOrchestrator"]
