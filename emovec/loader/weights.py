"""Installing checkpoint tensors into a Transformer.

Every tensor the model needs is addressed by an explicit path, the same
path the checkpoint uses once its `model.` prefix is stripped:

    embed_tokens.{weight,scales,biases}
    layers.{i}.input_layernorm.weight
    layers.{i}.post_attention_layernorm.weight
    layers.{i}.self_attn.{q,k,v,o}_proj.{weight,scales,biases}
    layers.{i}.self_attn.{q,k}_norm.weight
    layers.{i}.mlp.{gate,up,down}_proj.{weight,scales,biases}
    norm.weight

A missing required key aborts the load. A projection that ships only a
dense `.weight` (no `.scales`) is quantized on the way in.
"""
from __future__ import annotations

from torch import Tensor

from emovec.errors import ConfigInvalid
from emovec.layer.attention import AttentionLayer
from emovec.layer.quantized import QuantizedStorage
from emovec.layer.rms_norm import RMSNormLayer
from emovec.layer.swiglu import SwiGLULayer
from emovec.loader.state_reader import StateReader
from emovec.model.transformer import Transformer

_ATTENTION_PROJECTIONS = ("q_proj", "k_proj", "v_proj", "o_proj")
_MLP_PROJECTIONS = ("gate_proj", "up_proj", "down_proj")


class WeightLoader:
    """Copies a prefix-stripped state dict into a Transformer."""

    def __init__(self, model: Transformer, state_dict: dict[str, Tensor]) -> None:
        self.model = model
        self.state = StateReader(state_dict)

    def apply(self) -> list[str]:
        """Load all weights; returns the checkpoint keys that were not used."""
        self.load_quantized(self.model.embed_tokens, "embed_tokens")
        for idx, block in enumerate(self.model.layers):
            prefix = self.state.key("layers", str(idx))
            self.load_norm(block.input_layernorm, self.state.key(prefix, "input_layernorm"))
            self.load_norm(
                block.post_attention_layernorm,
                self.state.key(prefix, "post_attention_layernorm"),
            )
            self.load_attention(block.self_attn, self.state.key(prefix, "self_attn"))
            self.load_mlp(block.mlp, self.state.key(prefix, "mlp"))
        self.load_norm(self.model.norm, "norm")
        return self.state.unused()

    def load_attention(self, layer: AttentionLayer, prefix: str) -> None:
        for name in _ATTENTION_PROJECTIONS:
            self.load_quantized(getattr(layer, name), self.state.key(prefix, name))
        self.load_norm(layer.q_norm, self.state.key(prefix, "q_norm"))
        self.load_norm(layer.k_norm, self.state.key(prefix, "k_norm"))

    def load_mlp(self, layer: SwiGLULayer, prefix: str) -> None:
        for name in _MLP_PROJECTIONS:
            self.load_quantized(getattr(layer, name), self.state.key(prefix, name))

    def load_norm(self, layer: RMSNormLayer, prefix: str) -> None:
        key = self.state.key(prefix, "weight")
        try:
            layer.set_weight(self.state.get(key))
        except ValueError as e:
            raise ConfigInvalid(f"{key}: {e}") from e

    def load_quantized(self, layer: QuantizedStorage, prefix: str) -> None:
        """Load packed weight/scales/biases, or quantize a dense weight."""
        weight = self.state.get(self.state.key(prefix, "weight"))
        scales = self.state.get_optional(self.state.key(prefix, "scales"))
        try:
            if scales is None:
                layer.set_dense(weight)
            else:
                biases = self.state.get(self.state.key(prefix, "biases"))
                layer.set_weights(weight, scales, biases)
        except ValueError as e:
            raise ConfigInvalid(f"{prefix}: {e}") from e
