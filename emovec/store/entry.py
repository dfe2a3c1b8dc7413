"""Records held and produced by the vector store."""
from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict


class EmotionEntry(BaseModel):
    """One emotion word with its pleasure/arousal/dominance scores.

    `embedding` stays None until the entry is indexed. The label is the
    entry's key and is unique within a store.
    """

    model_config = ConfigDict(extra="ignore")

    label: str
    pleasure: float = 0.0
    arousal: float = 0.0
    dominance: float = 0.0
    embedding: list[float] | None = None

    @property
    def is_indexed(self) -> bool:
        return self.embedding is not None


@dataclass(frozen=True)
class SearchResult:
    """An entry and its cosine score against one query."""

    entry: EmotionEntry
    score: float


@dataclass(frozen=True)
class IndexReport:
    """Outcome of one index build.

    `skipped` counts entries that already had a vector; `failed` lists the
    labels whose embedding raised and were left unindexed.
    """

    total: int
    embedded: int
    skipped: int
    failed: tuple[str, ...] = ()
