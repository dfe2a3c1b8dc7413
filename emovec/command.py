"""Typed CLI command payloads.

Each command type represents a distinct user intent. The CLI parses arguments
into these typed objects, which are then dispatched to the appropriate handler.
Every command carries the engine settings it should run with.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from emovec.config.engine import EngineConfig


@dataclass(frozen=True, slots=True)
class EmbedCommand:
    """Request to embed one text and show the vector."""

    engine: EngineConfig
    text: str
    dimension: int | None


@dataclass(frozen=True, slots=True)
class CompareCommand:
    """Request to compare two texts by cosine similarity.

    With `whiten` set, the two vectors are whitened as a pair before the
    comparison.
    """

    engine: EngineConfig
    first: str
    second: str
    dimension: int | None
    whiten: bool


@dataclass(frozen=True, slots=True)
class IndexCommand:
    """Request to build the emotion-word index.

    Entries come from the vector cache when it can be read, otherwise from
    the CSV corpus.
    """

    engine: EngineConfig
    csv: Path | None
    cache: Path | None
    rebuild: bool


@dataclass(frozen=True, slots=True)
class SearchCommand:
    """Request to find the entries nearest to a query text."""

    engine: EngineConfig
    query: str
    top_k: int
    cache: Path | None
    whiten: bool


Command = EmbedCommand | CompareCommand | IndexCommand | SearchCommand
