"""Tests for semantic search."""

import pytest

from speakr_common.exceptions import (
    EmbeddingError,
    ErrorCategory,
    InvalidCommandError,
    SearchError,
    VectorStoreError,
)
from speakr_common.models import TranscriptRecord
from speakr_query.domain import DEFAULT_LIMIT, MAX_LIMIT, QueryOrchestrator

from conftest import transient_api_error


@pytest.fixture
def orchestrator(generator, vector_store):
    return QueryOrchestrator(generator, vector_store)


@pytest.fixture
def indexed(vector_store):
    records = {
        "close": ([1.0, 0.1, 0.0, 0.0], ["work"]),
        "middle": ([0.6, 0.8, 0.0, 0.0], ["home", "work"]),
        "far": ([0.0, 0.0, 1.0, 0.0], ["home"]),
    }
    for recording_id, (embedding, tags) in records.items():
        vector_store.records[recording_id] = TranscriptRecord(
            recording_id=recording_id,
            transcribed_text=f"text {recording_id}",
            tags=tags,
            embedding=embedding,
        )
    return vector_store


@pytest.mark.parametrize("query", ["", "   ", "\n"])
def test_blank_query_is_rejected_before_any_call(orchestrator, ctx, generator, vector_store, query):
    with pytest.raises(InvalidCommandError):
        orchestrator.search(ctx, query)

    assert generator.calls == []
    assert vector_store.search_calls == []


def test_results_are_ordered_by_similarity(orchestrator, ctx, indexed):
    results = orchestrator.search(ctx, "what did we discuss")

    assert [r.recording_id for r in results] == ["close", "middle", "far"]
    similarities = [r.similarity for r in results]
    assert similarities == sorted(similarities, reverse=True)


def test_tag_filter_is_an_intersection(orchestrator, ctx, indexed):
    results = orchestrator.search(ctx, "q", filter_tags=["home"])

    assert [r.recording_id for r in results] == ["middle", "far"]


def test_limit_truncates(orchestrator, ctx, indexed):
    assert len(orchestrator.search(ctx, "q", limit=1)) == 1


@pytest.mark.parametrize(
    "requested, effective",
    [(None, DEFAULT_LIMIT), (0, DEFAULT_LIMIT), (-5, DEFAULT_LIMIT), (3, 3), (MAX_LIMIT + 50, MAX_LIMIT)],
)
def test_limit_defaults_and_clamping(orchestrator, ctx, vector_store, requested, effective):
    orchestrator.search(ctx, "q", limit=requested)

    assert vector_store.search_calls == [([], effective)]


def test_embedding_failure_is_distinct_from_search_failure(orchestrator, ctx, generator, vector_store):
    generator.error = transient_api_error()

    with pytest.raises(EmbeddingError):
        orchestrator.search(ctx, "q")

    assert vector_store.search_calls == []


def test_search_failure_is_a_search_error(orchestrator, ctx, vector_store):
    vector_store.error = VectorStoreError("search", "connection refused")

    with pytest.raises(SearchError) as exc_info:
        orchestrator.search(ctx, "q")

    assert exc_info.value.category == ErrorCategory.TRANSIENT


def test_empty_store_returns_no_results(orchestrator, ctx):
    assert orchestrator.search(ctx, "anything") == []
