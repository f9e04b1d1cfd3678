"""Conversion between embedding vectors and the pgvector text representation."""

from collections.abc import Sequence


def to_vector_literal(vector: Sequence[float]) -> str:
    """
    Formats a vector as a pgvector literal, e.g. "[0.1,0.2,0.3]".

    `repr` of a float is the shortest string that parses back to the same
    value, so no precision is lost.
    """
    return "[" + ",".join(repr(float(v)) for v in vector) + "]"


def from_vector_literal(literal: str) -> list[float]:
    """
    Parses a pgvector literal back into a list of floats.

    Raises:
        ValueError: If the literal is not bracketed or holds a non-number.
    """
    text = literal.strip()
    if not (text.startswith("[") and text.endswith("]")):
        raise ValueError(f"Not a vector literal: {literal[:40]!r}")
    body = text[1:-1].strip()
    if not body:
        return []
    return [float(part) for part in body.split(",")]
