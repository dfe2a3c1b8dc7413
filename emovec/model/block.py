"""
block provides the pre-norm residual transformer block.
"""
from __future__ import annotations

from torch import Tensor, nn
from typing_extensions import override

from emovec.config.model import ModelConfig
from emovec.layer.attention import AttentionLayer
from emovec.layer.rms_norm import RMSNormLayer
from emovec.layer.swiglu import SwiGLULayer


class TransformerBlock(nn.Module):
    """
    TransformerBlock applies attention then the MLP, each behind an RMSNorm
    and wrapped in a residual connection.
    """

    def __init__(self, config: ModelConfig) -> None:
        super().__init__()
        self.self_attn = AttentionLayer(config)
        self.mlp = SwiGLULayer(config)
        self.input_layernorm = RMSNormLayer(config.hidden_size, eps=config.rms_norm_eps)
        self.post_attention_layernorm = RMSNormLayer(
            config.hidden_size, eps=config.rms_norm_eps
        )

    @override
    def forward(self, x: Tensor, mask: Tensor | None = None) -> Tensor:
        h = x + self.self_attn(self.input_layernorm(x), mask=mask)
        return h + self.mlp(self.post_attention_layernorm(h))
