"""Grouped-query self-attention with per-head q/k normalization and RoPE.

Qwen3 attention differs from a plain Llama block in one detail: queries and
keys are RMS-normalized per head (over head_dim) right after projection and
before the rotary encoding. That keeps attention logits in a stable range.
Key/value heads are fewer than query heads and are shared across groups.
"""
from __future__ import annotations

import torch.nn.functional as F
from torch import Tensor, nn
from typing_extensions import override

from emovec.config.model import ModelConfig
from emovec.layer.quantized import QuantizedLinear
from emovec.layer.rms_norm import RMSNormLayer
from emovec.layer.rope import RotaryEmbedding


class AttentionLayer(nn.Module):
    """Bias-free GQA attention: project -> q/k norm -> RoPE -> SDPA -> merge.

    Attribute names follow the checkpoint (`q_proj`, `k_norm`, ...) so the
    weight loader can address them by path.
    """

    def __init__(self, config: ModelConfig) -> None:
        super().__init__()
        self.config = config
        self.n_heads = int(config.num_attention_heads)
        self.n_kv_heads = int(config.num_key_value_heads)
        self.head_dim = int(config.head_dim)
        self.group_size = config.group_count

        d_model = int(config.hidden_size)
        self.q_proj = QuantizedLinear(d_model, self.n_heads * self.head_dim)
        self.k_proj = QuantizedLinear(d_model, self.n_kv_heads * self.head_dim)
        self.v_proj = QuantizedLinear(d_model, self.n_kv_heads * self.head_dim)
        self.o_proj = QuantizedLinear(self.n_heads * self.head_dim, d_model)

        self.q_norm = RMSNormLayer(self.head_dim, eps=config.rms_norm_eps)
        self.k_norm = RMSNormLayer(self.head_dim, eps=config.rms_norm_eps)

        self.rotary = RotaryEmbedding(self.head_dim, base=config.rope_theta)
        self._scale = self.head_dim ** -0.5

    def _heads(self, x: Tensor, n_heads: int) -> Tensor:
        """Reshape (B, T, H*D) -> (B, T, H, D)."""
        B, T, _ = x.shape
        return x.view(B, T, n_heads, self.head_dim)

    @staticmethod
    def _merge(x: Tensor) -> Tensor:
        """Reshape (B, H, T, D) -> (B, T, H*D) after attention."""
        B, H, T, hd = x.shape
        return x.transpose(1, 2).contiguous().view(B, T, H * hd)

    @override
    def forward(self, x: Tensor, mask: Tensor | None = None) -> Tensor:
        """Attend over the sequence.

        Args:
            x: Hidden states (B, T, hidden_size)
            mask: Optional additive mask (T, T), added to the scores

        Returns:
            (B, T, hidden_size)
        """
        if x.ndim != 3:
            raise ValueError(f"Expected (B,T,D), got {tuple(x.shape)}")
        T = int(x.shape[1])
        if mask is not None and tuple(mask.shape[-2:]) != (T, T):
            raise ValueError(f"Mask shape {tuple(mask.shape)} does not match seq_len {T}")

        q = self.q_norm(self._heads(self.q_proj(x), self.n_heads))
        k = self.k_norm(self._heads(self.k_proj(x), self.n_kv_heads))
        v = self._heads(self.v_proj(x), self.n_kv_heads)

        qh = self.rotary.rotate(q.transpose(1, 2))
        kh = self.rotary.rotate(k.transpose(1, 2))
        vh = v.transpose(1, 2)

        if self.group_size > 1:
            kh = kh.repeat_interleave(self.group_size, dim=1)
            vh = vh.repeat_interleave(self.group_size, dim=1)

        out = F.scaled_dot_product_attention(
            qh,
            kh,
            vh,
            attn_mask=None if mask is None else mask.to(dtype=qh.dtype),
            scale=self._scale,
        )
        return self.o_proj(self._merge(out))
