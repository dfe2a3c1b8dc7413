"""Rotary positional embeddings (RoPE) with cached cos/sin tables.

RoPE rotates query and key vectors by a position-dependent angle so that
attention scores depend on relative position. The head dimension is split
in halves and (x[i], x[i + D/2]) pairs are rotated together, matching the
non-traditional layout the checkpoints were trained with.
"""
from __future__ import annotations

import torch
from torch import nn


class RotaryEmbedding(nn.Module):
    """RoPE with cos/sin tables cached per (device, dtype).

    Tables grow to the next power of two so repeated calls with slightly
    different lengths reuse the same allocation.
    """

    inv_freq: torch.Tensor
    rot_dim: int

    def __init__(self, rot_dim: int, base: float = 10000.0) -> None:
        super().__init__()
        if rot_dim % 2 != 0:
            raise ValueError(f"rot_dim must be even, got {rot_dim}")
        self.rot_dim = int(rot_dim)
        self.base = float(base)
        inv_freq = 1.0 / (
            self.base
            ** (
                torch.arange(0, self.rot_dim, 2, dtype=torch.float32)
                / float(self.rot_dim)
            )
        )
        self.register_buffer("inv_freq", inv_freq, persistent=False)
        self._cos_sin_cache: dict[tuple[str, str], tuple[torch.Tensor, torch.Tensor]] = (
            {}
        )

    @staticmethod
    def _next_pow2(n: int) -> int:
        n = int(n)
        if n <= 0:
            return 0
        return 1 << (n - 1).bit_length()

    def _cos_sin(
        self, seq_len: int, device: torch.device, dtype: torch.dtype
    ) -> tuple[torch.Tensor, torch.Tensor]:
        """Get cached cos/sin tables of at least seq_len rows."""
        key = (str(device), str(dtype))
        cached = self._cos_sin_cache.get(key)
        if cached is not None and int(cached[0].size(0)) >= seq_len:
            return cached[0][:seq_len], cached[1][:seq_len]

        target_len = self._next_pow2(seq_len)
        t = torch.arange(0, target_len, device=device, dtype=torch.float32)
        freqs = torch.outer(t, self.inv_freq.to(device=device, dtype=torch.float32))
        cos = torch.cos(freqs).to(dtype=dtype)
        sin = torch.sin(freqs).to(dtype=dtype)
        self._cos_sin_cache[key] = (cos, sin)
        return cos[:seq_len], sin[:seq_len]

    def rotate(self, x: torch.Tensor, pos_offset: int = 0) -> torch.Tensor:
        """Apply rotary embeddings to a (B, H, T, D) query/key tensor.

        The first rot_dim dimensions are rotated; the rest pass through.
        """
        _B, _H, T, D = x.shape
        rot = self.rot_dim
        if rot > D:
            raise ValueError(f"rot_dim {rot} > head_dim {D}")

        cos, sin = self._cos_sin(pos_offset + T, x.device, x.dtype)
        cos = cos[pos_offset : pos_offset + T].unsqueeze(0).unsqueeze(0)
        sin = sin[pos_offset : pos_offset + T].unsqueeze(0).unsqueeze(0)

        x_rot = x[..., :rot]
        x_pass = x[..., rot:]

        x1 = x_rot[..., : rot // 2]
        x2 = x_rot[..., rot // 2 : rot]
        y1 = x1 * cos - x2 * sin
        y2 = x1 * sin + x2 * cos

        return torch.cat([y1, y2, x_pass], dim=-1)
