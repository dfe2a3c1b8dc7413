"""Cosine similarity, Euclidean distance, and diagonal whitening.

These work on plain Python float sequences (what the engine returns) and
never raise on degenerate input: mismatched or empty vectors get a sentinel
instead (0 for cosine, +inf for distance).

Raw sentence embeddings are anisotropic: they crowd into a narrow cone, so
every pair looks similar. `whiten` is a BERT-whitening style correction
restricted to the diagonal: it centers the set and equalizes per-dimension
variance, but does not decorrelate dimensions.
"""
from __future__ import annotations

import math
from collections.abc import Sequence

import torch

WHITEN_EPS = 1e-8


def _pair(a: Sequence[float], b: Sequence[float]) -> tuple[torch.Tensor, torch.Tensor] | None:
    if len(a) != len(b) or len(a) == 0:
        return None
    return (
        torch.as_tensor(list(a), dtype=torch.float64),
        torch.as_tensor(list(b), dtype=torch.float64),
    )


def cosine(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity in [-1, 1]; 0 for mismatched, empty, or zero vectors."""
    pair = _pair(a, b)
    if pair is None:
        return 0.0
    ta, tb = pair
    denominator = float(torch.linalg.vector_norm(ta) * torch.linalg.vector_norm(tb))
    if denominator <= 0.0:
        return 0.0
    return float(torch.dot(ta, tb)) / denominator


def euclidean(a: Sequence[float], b: Sequence[float]) -> float:
    """L2 distance; +inf for mismatched or empty vectors."""
    pair = _pair(a, b)
    if pair is None:
        return math.inf
    ta, tb = pair
    return float(torch.linalg.vector_norm(ta - tb))


def whiten(vectors: Sequence[Sequence[float]]) -> list[list[float]]:
    """Center, scale each dimension to unit variance, then L2-normalize rows.

    Input that is empty (no vectors, or an empty first vector) is returned
    unchanged. Rows whose whitened norm is zero (e.g. a set of identical
    vectors) come back as zero vectors rather than NaN.
    """
    if len(vectors) == 0 or len(vectors[0]) == 0:
        return [list(v) for v in vectors]

    x = torch.as_tensor([list(v) for v in vectors], dtype=torch.float64)
    centered = x - x.mean(dim=0, keepdim=True)
    std = torch.sqrt((centered * centered).mean(dim=0, keepdim=True) + WHITEN_EPS)
    scaled = centered / std

    norms = torch.linalg.vector_norm(scaled, dim=-1, keepdim=True)
    safe = norms.clamp(min=torch.finfo(torch.float64).tiny)
    out = torch.where(norms > 0, scaled / safe, scaled)
    return out.tolist()
