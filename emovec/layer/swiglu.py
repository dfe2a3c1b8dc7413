"""SwiGLU: the gated MLP used in Qwen3 blocks.

output = down(silu(gate(x)) * up(x)), with all three projections stored
4-bit quantized and no bias terms.
"""
from __future__ import annotations

import torch.nn.functional as F
from torch import Tensor, nn
from typing_extensions import override

from emovec.config.model import ModelConfig
from emovec.layer.quantized import QuantizedLinear


class SwiGLULayer(nn.Module):
    """Gated SiLU feed-forward block with gate, up, and down projections."""

    def __init__(self, config: ModelConfig) -> None:
        super().__init__()
        self.d_model = int(config.hidden_size)
        self.d_ff = int(config.intermediate_size)
        self.gate_proj = QuantizedLinear(self.d_model, self.d_ff)
        self.up_proj = QuantizedLinear(self.d_model, self.d_ff)
        self.down_proj = QuantizedLinear(self.d_ff, self.d_model)

    @override
    def forward(self, x: Tensor) -> Tensor:
        """(B, T, d_model) -> (B, T, d_model)."""
        if x.ndim != 3:
            raise ValueError(f"Expected (B,T,D), got {tuple(x.shape)}")
        return self.down_proj(F.silu(self.gate_proj(x)) * self.up_proj(x))
