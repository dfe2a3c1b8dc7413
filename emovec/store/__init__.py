"""Emotion-word vector store: entries, index build, cache, and search."""
from emovec.store.entry import EmotionEntry, IndexReport, SearchResult
from emovec.store.ingest import read_csv
from emovec.store.vector_store import IndexStatus, VectorStore

__all__ = [
    "EmotionEntry",
    "IndexReport",
    "IndexStatus",
    "SearchResult",
    "VectorStore",
    "read_csv",
]
