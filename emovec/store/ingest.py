"""Reading the labelled emotion corpus from CSV.

Expected layout, one header row then data rows:

    Label,Pleasure,Arousal,Dominance
    joy,0.8,0.7,0.6

Blank lines and rows with fewer than four fields are skipped, scores that
do not parse as numbers become 0.0, and repeated labels keep their first
occurrence.
"""
from __future__ import annotations

import csv
from pathlib import Path

from emovec.console import logger
from emovec.store.entry import EmotionEntry


def _score(field: str) -> float:
    try:
        return float(field)
    except ValueError:
        return 0.0


def read_csv(path: str | Path) -> list[EmotionEntry]:
    """Parse a corpus file into unindexed entries."""
    entries: list[EmotionEntry] = []
    seen: set[str] = set()
    with Path(path).open(encoding="utf-8", newline="") as f:
        rows = csv.reader(f)
        next(rows, None)
        for row in rows:
            fields = [field.strip() for field in row]
            if not any(fields) or len(fields) < 4:
                continue
            label = fields[0]
            if label in seen:
                logger.warning(f"Duplicate label {label!r} skipped")
                continue
            seen.add(label)
            entries.append(
                EmotionEntry(
                    label=label,
                    pleasure=_score(fields[1]),
                    arousal=_score(fields[2]),
                    dominance=_score(fields[3]),
                )
            )
    return entries
