"""VectorStore: builds, persists, and searches the emotion-word index.

Index build walks the entries once and embeds every label that has no
vector yet, so a second build over an indexed store does no work. Vectors
are swapped into their entry by a single attribute assignment; searches
take a snapshot of the entry list and read each vector once.

Search scores are plain dot products. That equals cosine similarity only
for unit-length vectors, which the engine produces whenever it truncates
(any target dimension below the hidden size). Vectors loaded from a cache
written with another configuration are used as they are.
"""
from __future__ import annotations

import asyncio
import enum
import threading
from collections.abc import Callable, Iterable
from pathlib import Path

import torch
from pydantic import TypeAdapter

from emovec.config.engine import StoreConfig
from emovec.console import logger
from emovec.engine import EmbeddingEngine
from emovec.errors import CacheIOFailure, NotLoaded, PerEntryEmbedFailure
from emovec.similarity import whiten as whiten_vectors
from emovec.store.entry import EmotionEntry, IndexReport, SearchResult
from emovec.store.ingest import read_csv

ProgressCallback = Callable[[float], None]

_ENTRIES = TypeAdapter(list[EmotionEntry])


class IndexStatus(str, enum.Enum):
    """Whether an index build is running."""

    IDLE = "idle"
    INDEXING = "indexing"


class VectorStore:
    """Labelled entries with optional embeddings, plus top-K search."""

    def __init__(
        self,
        engine: EmbeddingEngine,
        config: StoreConfig | None = None,
        *,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        self.engine = engine
        self.config = config if config is not None else StoreConfig()
        self.on_progress = on_progress
        self.status = IndexStatus.IDLE
        self.progress = 0.0
        self._entries: list[EmotionEntry] = []
        self._build_lock = threading.Lock()

    # ─────────────────────────────────────────────────────────────────────
    # Entries
    # ─────────────────────────────────────────────────────────────────────

    @property
    def entries(self) -> list[EmotionEntry]:
        return list(self._entries)

    @property
    def cache_path(self) -> Path:
        return Path(self.config.cache_path).expanduser()

    @property
    def indexed_count(self) -> int:
        return sum(1 for e in self._entries if e.embedding is not None)

    def set_entries(self, entries: Iterable[EmotionEntry]) -> None:
        """Replace the entry set; labels must be unique."""
        new_entries = list(entries)
        seen: set[str] = set()
        for entry in new_entries:
            if entry.label in seen:
                raise ValueError(f"Duplicate label in entries: {entry.label!r}")
            seen.add(entry.label)
        self._entries = new_entries

    def load_csv(self, path: str | Path) -> int:
        """Replace the entries with the rows of a corpus CSV."""
        self.set_entries(read_csv(path))
        logger.success(f"Loaded {len(self._entries)} entries from CSV")
        return len(self._entries)

    def clear_embeddings(self) -> None:
        """Drop every stored vector so the next build re-embeds all entries."""
        for entry in self._entries:
            entry.embedding = None

    # ─────────────────────────────────────────────────────────────────────
    # Index build
    # ─────────────────────────────────────────────────────────────────────

    def _set_progress(self, value: float, callback: ProgressCallback | None) -> None:
        self.progress = value
        if callback is not None:
            callback(value)

    def build_index(self, on_progress: ProgressCallback | None = None) -> IndexReport | None:
        """Embed every entry that lacks a vector, then save the cache.

        Returns None without doing anything when another build is running.
        Entries that fail to embed are logged and left unindexed.

        Raises:
            NotLoaded: the engine has no resident model.
        """
        if not self._build_lock.acquire(blocking=False):
            return None
        try:
            if not self.engine.is_loaded:
                raise NotLoaded()
            return self._build(on_progress or self.on_progress)
        finally:
            self.status = IndexStatus.IDLE
            self._build_lock.release()

    async def build_index_async(
        self, on_progress: ProgressCallback | None = None
    ) -> IndexReport | None:
        """Run build_index() on a worker thread."""
        return await asyncio.to_thread(self.build_index, on_progress)

    def _build(self, callback: ProgressCallback | None) -> IndexReport:
        self.status = IndexStatus.INDEXING
        self._set_progress(0.0, callback)

        entries = list(self._entries)
        total = len(entries)
        every = self.config.progress_every
        embedded = 0
        skipped = 0
        failed: list[str] = []

        for i, entry in enumerate(entries):
            if entry.embedding is not None:
                skipped += 1
                continue
            try:
                vector = self.engine.embed(entry.label)
                if not vector:
                    raise ValueError("label produced no tokens")
            except Exception as e:
                logger.warning(str(PerEntryEmbedFailure(entry.label, e)))
                failed.append(entry.label)
            else:
                entry.embedding = vector
                embedded += 1

            if i % every == 0:
                self._set_progress(i / total, callback)

        self._set_progress(1.0, callback)
        report = IndexReport(
            total=total, embedded=embedded, skipped=skipped, failed=tuple(failed)
        )
        logger.success(
            f"Index build complete: {embedded} embedded, {skipped} already indexed, "
            f"{len(failed)} failed"
        )
        self.save_cache()
        return report

    # ─────────────────────────────────────────────────────────────────────
    # Search
    # ─────────────────────────────────────────────────────────────────────

    def search(
        self,
        query: str,
        top_k: int = 5,
        *,
        whiten: bool = False,
    ) -> list[SearchResult]:
        """Rank indexed entries by similarity to the query text.

        Scores are dot products against stored vectors, assumed unit-norm.
        Ties keep insertion order. With `whiten=True` the stored vectors and
        the query are whitened together first.

        Raises:
            NotLoaded: the engine has no resident model.
            ValueError: stored vectors and the query differ in dimension.
        """
        query_vector = self.engine.embed(query)
        if not query_vector or top_k <= 0:
            return []

        indexed = [(e, e.embedding) for e in list(self._entries) if e.embedding is not None]
        if not indexed:
            return []

        vectors = [list(v) for _, v in indexed]
        if any(len(v) != len(query_vector) for v in vectors):
            raise ValueError(
                f"Index holds vectors of other dimensions than the query "
                f"({len(query_vector)}); rebuild the index"
            )
        if whiten:
            rows = whiten_vectors(vectors + [query_vector])
            vectors, query_vector = rows[:-1], rows[-1]

        matrix = torch.tensor(vectors, dtype=torch.float32)
        q = torch.tensor(query_vector, dtype=torch.float32)
        scores = (matrix @ q).tolist()

        results = [SearchResult(entry=e, score=float(s)) for (e, _), s in zip(indexed, scores)]
        results.sort(key=lambda r: r.score, reverse=True)
        return results[:top_k]

    # ─────────────────────────────────────────────────────────────────────
    # Persistence
    # ─────────────────────────────────────────────────────────────────────

    def save_cache(self) -> bool:
        """Write all entries (labels, scores, vectors) to the cache file."""
        path = self.cache_path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(_ENTRIES.dump_json(self._entries))
        except OSError as e:
            logger.error(str(CacheIOFailure(f"Failed to save cache to {path}: {e}")))
            return False
        logger.path(str(path), "Vector cache saved")
        return True

    def load_cache(self) -> bool:
        """Restore entries from the cache file.

        Returns False when there is no cache or it cannot be read; the
        current entries are left untouched in that case.
        """
        path = self.cache_path
        if not path.is_file():
            return False
        try:
            entries = _ENTRIES.validate_json(path.read_bytes())
            self.set_entries(entries)
        except (OSError, ValueError) as e:
            logger.error(str(CacheIOFailure(f"Failed to load cache from {path}: {e}")))
            return False
        logger.success(f"Loaded {len(self._entries)} entries from cache")
        return True
