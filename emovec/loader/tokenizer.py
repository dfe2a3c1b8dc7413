"""Tokenizer abstraction.

The engine only needs `encode(text) -> list[int]`. The default backend is
the Hugging Face tokenizer shipped next to the checkpoint; tests plug in
their own implementations.
"""
from __future__ import annotations

import abc
import importlib
import importlib.util
from collections.abc import Callable
from pathlib import Path


class Tokenizer(abc.ABC):
    """Abstract base class for text-to-token encoding."""

    @abc.abstractmethod
    def encode(self, text: str) -> list[int]:
        """Convert text to token IDs."""


class HFTokenizer(Tokenizer):
    """`transformers.AutoTokenizer` loaded from a model folder."""

    def __init__(self, folder: str | Path) -> None:
        if importlib.util.find_spec("transformers") is None:
            raise ImportError("transformers is required to load the model tokenizer")
        mod = importlib.import_module("transformers")
        auto = getattr(mod, "AutoTokenizer", None)
        if auto is None:
            raise ImportError("transformers.AutoTokenizer is not available")
        self._tok = auto.from_pretrained(str(folder))

        encode_fn = getattr(self._tok, "encode", None)
        if not callable(encode_fn):
            raise ValueError("tokenizer does not support encode(...)")
        self._encode_fn: Callable[..., list[int]] = encode_fn

    def encode(self, text: str) -> list[int]:
        return [int(i) for i in self._encode_fn(str(text), add_special_tokens=True)]
