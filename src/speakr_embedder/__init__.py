"""Embedding service: indexes successful transcriptions in the vector store."""
