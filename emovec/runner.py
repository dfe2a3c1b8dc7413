"""Runner: carries out CLI commands against an engine and a vector store.

The runner owns the terminal output for each command; the engine and the
store only log diagnostics.
"""
from __future__ import annotations

import math
import time
from pathlib import Path

from emovec.command import CompareCommand, EmbedCommand, IndexCommand, SearchCommand
from emovec.config.engine import StoreConfig
from emovec.console import logger
from emovec.engine import EmbeddingEngine
from emovec.similarity import cosine, whiten
from emovec.store import IndexReport, SearchResult, VectorStore


class Runner:
    """Executes typed commands with one engine instance."""

    def __init__(self, engine: EmbeddingEngine) -> None:
        self.engine = engine

    def ensure_loaded(self) -> None:
        """Load the model if needed; raises RuntimeError when loading fails."""
        if self.engine.is_loaded:
            return
        with logger.spinner() as progress:
            task = progress.add_task("Loading model...", total=None)
            loaded = self.engine.load()
            progress.update(task, completed=1)
        if not loaded:
            raise RuntimeError(self.engine.error_message or "Model load failed")

    def _store(self, cache: Path | None) -> VectorStore:
        config = StoreConfig() if cache is None else StoreConfig(cache_path=cache)
        return VectorStore(self.engine, config)

    def embed(self, command: EmbedCommand) -> list[float]:
        self.ensure_loaded()
        vector = self.engine.embed(command.text, dimension=command.dimension)
        logger.header("Embedding", command.text)
        logger.metric("dimension", len(vector))
        logger.metric("norm", math.sqrt(sum(v * v for v in vector)))
        logger.vector("values", vector)
        return vector

    def compare(self, command: CompareCommand) -> float:
        """Cosine similarity of two texts, optionally after whitening the pair."""
        self.ensure_loaded()
        started = time.perf_counter()
        a = self.engine.embed(command.first, dimension=command.dimension)
        b = self.engine.embed(command.second, dimension=command.dimension)
        if command.whiten:
            a, b = whiten([a, b])
        score = cosine(a, b)
        elapsed_ms = (time.perf_counter() - started) * 1000.0

        logger.header("Compare", "whitened" if command.whiten else None)
        logger.metric("cosine", score)
        logger.metric("elapsed", elapsed_ms, unit=" ms")
        return score

    def index(self, command: IndexCommand) -> IndexReport | None:
        store = self._store(command.cache)
        if command.rebuild or not store.load_cache():
            if command.csv is None:
                raise ValueError(
                    f"No vector cache at {store.cache_path}; pass a CSV corpus to build one."
                )
            store.load_csv(command.csv)

        self.ensure_loaded()
        logger.header("Index", f"{len(store.entries)} entries")
        with logger.progress_bar() as progress:
            task = progress.add_task("Indexing...", total=1.0)
            report = store.build_index(
                on_progress=lambda fraction: progress.update(task, completed=fraction)
            )
        if report is not None:
            logger.key_value(
                {
                    "total": report.total,
                    "embedded": report.embedded,
                    "skipped": report.skipped,
                    "failed": len(report.failed),
                },
                title="Index build",
            )
        return report

    def search(self, command: SearchCommand) -> list[SearchResult]:
        store = self._store(command.cache)
        if not store.load_cache():
            raise ValueError(
                f"No vector cache at {store.cache_path}; run `emovec index` first."
            )

        self.ensure_loaded()
        results = store.search(command.query, command.top_k, whiten=command.whiten)
        logger.table(
            title=f"Nearest to {command.query!r}",
            columns=["Label", "Score", "Pleasure", "Arousal", "Dominance"],
            rows=[
                [
                    r.entry.label,
                    f"{r.score:.4f}",
                    f"{r.entry.pleasure:.2f}",
                    f"{r.entry.arousal:.2f}",
                    f"{r.entry.dominance:.2f}",
                ]
                for r in results
            ],
        )
        return results
