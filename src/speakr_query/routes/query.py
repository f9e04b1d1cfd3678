"""Search and record lookup endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query

from speakr_common.context import OperationContext
from speakr_common.exceptions import (
    EmbeddingError,
    ErrorCategory,
    SpeakrError,
    category_of,
)
from speakr_common.logging import setup_logging

from speakr_query.dependencies import get_operation_context, get_query_orchestrator
from speakr_query.domain import QueryOrchestrator
from speakr_query.response_models import QueryRequest, QueryResponse, RecordResponse

logger = setup_logging()

router = APIRouter(prefix="/api/v1", tags=["query"])

OrchestratorDep = Annotated[QueryOrchestrator, Depends(get_query_orchestrator)]
ContextDep = Annotated[OperationContext, Depends(get_operation_context)]

_STATUS_BY_CATEGORY = {
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.CONFLICT: 409,
    ErrorCategory.AUTH: 502,
    ErrorCategory.TRANSIENT: 503,
    ErrorCategory.INTERNAL: 500,
}


def status_code_for(error: Exception) -> int:
    """Maps an orchestrator error onto an HTTP status code."""
    if isinstance(error, EmbeddingError):
        return 502
    return _STATUS_BY_CATEGORY.get(category_of(error), 500)


def _to_http_error(ctx: OperationContext, error: Exception) -> HTTPException:
    status_code = status_code_for(error)
    logger.error(
        "Request failed",
        extra=ctx.log_extra(status_code=status_code, error=str(error)),
    )
    if status_code == 500 and not isinstance(error, SpeakrError):
        return HTTPException(status_code=500, detail="Internal server error")
    return HTTPException(status_code=status_code, detail=str(error))


@router.post("/query", response_model=QueryResponse)
def query(
    body: QueryRequest,
    orchestrator: OrchestratorDep,
    ctx: ContextDep,
    limit: Annotated[int | None, Query()] = None,
):
    """Returns stored transcripts ranked by similarity to the query text."""
    # A positive ?limit= overrides the body.
    effective_limit = limit if limit is not None and limit > 0 else body.limit
    try:
        results = orchestrator.search(
            ctx.for_operation("query"),
            body.query_text,
            filter_tags=body.filter_tags,
            limit=effective_limit,
        )
    except Exception as e:
        raise _to_http_error(ctx, e)
    return QueryResponse(results=results, count=len(results))


@router.get("/records/{recording_id}", response_model=RecordResponse)
def get_record(recording_id: str, orchestrator: OrchestratorDep, ctx: ContextDep):
    """Returns the stored transcript of one recording."""
    try:
        record = orchestrator.get_record(ctx.for_operation("get_record"), recording_id)
    except Exception as e:
        raise _to_http_error(ctx, e)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Recording '{recording_id}' not found")
    return RecordResponse(
        recording_id=record.recording_id,
        transcribed_text=record.transcribed_text,
        tags=record.tags,
        metadata=record.metadata,
        embedding_dimensions=len(record.embedding),
    )
