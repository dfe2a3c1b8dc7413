"""The embedding transformer: token ids in, normalized hidden states out.

The stack is a decoder-only Qwen3 model without an LM head: quantized token
embeddings, N pre-norm residual blocks under a causal mask, and a final
RMSNorm. Embeddings are read from the hidden states by the engine.

Matryoshka truncation happens here: the model was trained so that any
leading prefix of the hidden dimensions is itself a usable embedding, so a
smaller target dimension keeps the prefix and re-normalizes it to unit
length so cosine similarity stays meaningful.
"""
from __future__ import annotations

import torch
from torch import Tensor, nn
from typing_extensions import override

from emovec.config.model import ModelConfig
from emovec.layer.quantized import QuantizedEmbedding
from emovec.layer.rms_norm import RMSNormLayer
from emovec.model.block import TransformerBlock

RENORM_EPS = 1e-6


def causal_mask(
    seq_len: int,
    *,
    device: torch.device | str | None = None,
    dtype: torch.dtype = torch.float32,
) -> Tensor:
    """Additive (L, L) mask: 0 on and below the diagonal, -inf above it."""
    full = torch.full((seq_len, seq_len), float("-inf"), device=device, dtype=dtype)
    return torch.triu(full, diagonal=1)


def truncate_and_renormalize(x: Tensor, dim: int, eps: float = RENORM_EPS) -> Tensor:
    """Keep the first `dim` features and rescale each vector to unit L2 norm."""
    head = x[..., :dim]
    return head / torch.sqrt((head * head).sum(dim=-1, keepdim=True) + eps)


class Transformer(nn.Module):
    """Quantized Qwen3 decoder stack used as a text encoder."""

    def __init__(self, config: ModelConfig) -> None:
        super().__init__()
        self.config = config
        self.embed_tokens = QuantizedEmbedding(config.vocab_size, config.hidden_size)
        self.layers = nn.ModuleList(
            [TransformerBlock(config) for _ in range(config.num_hidden_layers)]
        )
        self.norm = RMSNormLayer(config.hidden_size, eps=config.rms_norm_eps)

    @override
    def forward(self, input_ids: Tensor, target_dimension: int | None = None) -> Tensor:
        """Run the stack.

        Args:
            input_ids: Token ids, shape (B, T)
            target_dimension: Optional Matryoshka width; applied only when
                smaller than hidden_size

        Returns:
            Hidden states (B, T, hidden_size or target_dimension)
        """
        if input_ids.ndim != 2:
            raise ValueError(f"Expected (B,T) token ids, got {tuple(input_ids.shape)}")
        T = int(input_ids.shape[1])
        if T > self.config.max_position_embeddings:
            raise ValueError(
                f"Sequence length {T} exceeds max_position_embeddings "
                f"{self.config.max_position_embeddings}"
            )

        h = self.embed_tokens(input_ids)
        mask = causal_mask(T, device=h.device, dtype=h.dtype)
        for layer in self.layers:
            h = layer(h, mask=mask)

        out = self.norm(h)
        if target_dimension is not None and target_dimension < self.config.hidden_size:
            out = truncate_and_renormalize(out, int(target_dimension))
        return out

    def memory_bytes(self) -> int:
        """Bytes held by all parameters and buffers (the resident weights)."""
        tensors = list(self.parameters()) + list(self.buffers())
        return sum(t.numel() * t.element_size() for t in tensors)
