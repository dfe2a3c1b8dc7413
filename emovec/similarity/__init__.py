"""Similarity measures over plain float vectors."""
from emovec.similarity.calculator import cosine, euclidean, whiten

__all__ = ["cosine", "euclidean", "whiten"]
