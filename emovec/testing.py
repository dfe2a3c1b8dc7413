"""Small deterministic fixtures shared by the unit tests.

A tiny Qwen3-shaped config, a transformer filled with seeded random weights
(quantized on the way in, like a dense checkpoint would be), and a
character-level tokenizer that needs no files.
"""
from __future__ import annotations

import torch

from emovec.config.engine import EngineConfig
from emovec.config.model import ModelConfig
from emovec.engine import EmbeddingEngine
from emovec.layer.quantized import QuantizedStorage
from emovec.layer.rms_norm import RMSNormLayer
from emovec.loader.tokenizer import Tokenizer
from emovec.model.transformer import Transformer


def tiny_config(**overrides: object) -> ModelConfig:
    values: dict[str, object] = {
        "hidden_size": 64,
        "num_hidden_layers": 2,
        "intermediate_size": 128,
        "num_attention_heads": 4,
        "num_key_value_heads": 2,
        "head_dim": 16,
        "rms_norm_eps": 1e-6,
        "vocab_size": 97,
        "rope_theta": 10000.0,
        "max_position_embeddings": 128,
    }
    values.update(overrides)
    return ModelConfig(**values)


def randomize(model: Transformer, seed: int = 0) -> Transformer:
    """Fill every quantized matrix and norm scale with seeded random values."""
    gen = torch.Generator().manual_seed(seed)
    for module in model.modules():
        if isinstance(module, QuantizedStorage):
            dense = torch.randn(module.rows, module.spec.features, generator=gen) * 0.1
            module.set_dense(dense)
        elif isinstance(module, RMSNormLayer):
            module.set_weight(1.0 + 0.1 * torch.randn(module.d_model, generator=gen))
    return model


def tiny_model(seed: int = 0, **overrides: object) -> Transformer:
    return randomize(Transformer(tiny_config(**overrides)), seed).eval()


class CharTokenizer(Tokenizer):
    """One token per character, ids folded into the vocabulary."""

    def __init__(self, vocab_size: int = 97) -> None:
        self.vocab_size = vocab_size

    def encode(self, text: str) -> list[int]:
        return [ord(ch) % self.vocab_size for ch in text]


def tiny_engine(seed: int = 0, **config: object) -> EmbeddingEngine:
    """An engine with a tiny random model already attached."""
    engine = EmbeddingEngine(EngineConfig(**config))
    engine.attach(tiny_model(seed), CharTokenizer())
    return engine
