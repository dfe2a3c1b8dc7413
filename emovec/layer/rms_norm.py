"""RMSNorm: root-mean-square normalization with a learned scale.

Qwen3 uses RMSNorm everywhere LayerNorm would appear: before attention,
before the MLP, after the last block, and per head on queries and keys.
"""
from __future__ import annotations

import torch
from torch import Tensor, nn
from typing_extensions import override


class RMSNormLayer(nn.Module):
    """Root mean square normalization over the last axis.

    Computes x / sqrt(mean(x^2) + eps) * weight. The statistics are taken
    in float32 regardless of the input dtype.
    """

    def __init__(self, d_model: int, eps: float = 1e-6) -> None:
        super().__init__()
        self.d_model = int(d_model)
        self.eps = float(eps)
        self.weight = nn.Parameter(torch.ones(self.d_model), requires_grad=False)

    @override
    def forward(self, x: Tensor) -> Tensor:
        if int(x.shape[-1]) != self.d_model:
            raise ValueError(f"Expected x last dim {self.d_model}, got {tuple(x.shape)}")

        x_f = x.float()
        inv_rms = torch.rsqrt(x_f.pow(2).mean(dim=-1, keepdim=True) + self.eps)
        return (x_f * inv_rms).to(dtype=x.dtype) * self.weight.to(dtype=x.dtype)

    def set_weight(self, weight: Tensor) -> None:
        """Copy a checkpoint scale vector in, checking its shape."""
        if tuple(weight.shape) != (self.d_model,):
            raise ValueError(
                f"RMSNorm weight shape mismatch: expected ({self.d_model},), "
                f"got {tuple(weight.shape)}"
            )
        self.weight.data.copy_(weight.to(dtype=self.weight.dtype))
