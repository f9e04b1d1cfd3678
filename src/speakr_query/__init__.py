"""Query service: semantic search over indexed transcripts over HTTP."""
