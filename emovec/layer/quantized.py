"""4-bit group-quantized linear and embedding layers.

Weights are stored the way MLX writes them: each 32-bit word packs eight
4-bit values (lowest nibble first), and each group of 64 consecutive values
in a row shares a float scale and bias:

    value = nibble * scale[group] + bias[group]

Dequantization runs on every call instead of caching a full-precision copy,
which keeps resident memory at roughly an eighth of a float32 model.
"""
from __future__ import annotations

import torch
import torch.nn.functional as F
from torch import Tensor, nn
from typing_extensions import override

from emovec.config.quant import BITS, GROUP_SIZE, WORD_BITS, QuantSpec
from emovec.errors import ConfigInvalid

_WORD_RANGE = 1 << WORD_BITS
_INT32_LIMIT = 1 << (WORD_BITS - 1)


def as_words(packed: Tensor) -> Tensor:
    """View packed words as non-negative int64 values.

    Checkpoints may carry the words as uint32 or as (signed) int32; both
    map to the same unsigned bit patterns here.
    """
    uint32 = getattr(torch, "uint32", None)
    if uint32 is not None and packed.dtype == uint32:
        packed = packed.view(torch.int32)
    return packed.to(torch.int64) & (_WORD_RANGE - 1)


def to_int32_words(words: Tensor) -> Tensor:
    """Store unsigned 32-bit word values in an int32 tensor (two's complement)."""
    words = as_words(words)
    return torch.where(words >= _INT32_LIMIT, words - _WORD_RANGE, words).to(torch.int32)


def unpack(packed: Tensor, bits: int = BITS) -> Tensor:
    """Unpack (..., cols) words into (..., cols * 32/bits) integer values.

    Word k contributes values k*8 .. k*8+7, taken with right shifts of
    0, 4, ..., 28 and a 0x0F mask.
    """
    words = as_words(packed)
    mask = (1 << bits) - 1
    parts = [(words >> shift) & mask for shift in range(0, WORD_BITS, bits)]
    values = torch.stack(parts, dim=-1)
    return values.reshape(*packed.shape[:-1], packed.shape[-1] * len(parts))


def pack(values: Tensor, bits: int = BITS) -> Tensor:
    """Pack (..., n) small integers into (..., n * bits/32) int32 words."""
    per_word = WORD_BITS // bits
    if values.shape[-1] % per_word != 0:
        raise ValueError(
            f"Last dim {values.shape[-1]} is not a multiple of {per_word}"
        )
    v = values.to(torch.int64) & ((1 << bits) - 1)
    v = v.reshape(*values.shape[:-1], -1, per_word)
    shifts = torch.arange(0, WORD_BITS, bits, dtype=torch.int64, device=v.device)
    words = torch.bitwise_left_shift(v, shifts).sum(dim=-1)
    return to_int32_words(words)


def dequantize(
    packed: Tensor,
    scales: Tensor,
    biases: Tensor,
    group_size: int = GROUP_SIZE,
    bits: int = BITS,
) -> Tensor:
    """Reconstruct float32 values from packed words and per-group scale/bias."""
    q = unpack(packed, bits).to(torch.float32)
    lead = q.shape[:-1]
    groups = int(scales.shape[-1])
    if q.shape[-1] != groups * group_size:
        raise ValueError(
            f"Unpacked width {q.shape[-1]} != groups ({groups}) * group_size ({group_size})"
        )
    q = q.reshape(*lead, groups, group_size)
    s = scales.to(torch.float32).unsqueeze(-1)
    b = biases.to(torch.float32).unsqueeze(-1)
    return (q * s + b).reshape(*lead, groups * group_size)


def quantize(
    weight: Tensor,
    group_size: int = GROUP_SIZE,
    bits: int = BITS,
) -> tuple[Tensor, Tensor, Tensor]:
    """Affine min/max quantization of a dense (rows, features) matrix.

    Returns (packed, scales, biases) in the layout `dequantize` expects.
    Used to load dense checkpoints into quantized layers.
    """
    if weight.ndim != 2:
        raise ValueError(f"Expected a 2D weight, got {tuple(weight.shape)}")
    rows, features = weight.shape
    QuantSpec(features=int(features), group_size=group_size, bits=bits).validate()

    levels = (1 << bits) - 1
    w = weight.detach().to(torch.float32).reshape(rows, -1, group_size)
    w_min = w.amin(dim=-1, keepdim=True)
    w_max = w.amax(dim=-1, keepdim=True)
    scale = ((w_max - w_min) / levels).clamp(min=1e-8)
    q = torch.round((w - w_min) / scale).clamp(0, levels)
    packed = pack(q.reshape(rows, features), bits)
    return packed, scale.squeeze(-1), w_min.squeeze(-1)


def _spec(features: int) -> QuantSpec:
    spec = QuantSpec(features=int(features))
    try:
        spec.validate()
    except ValueError as e:
        raise ConfigInvalid(str(e)) from e
    return spec


class QuantizedStorage(nn.Module):
    """Shared buffer handling for quantized (rows, features) matrices."""

    weight: Tensor
    scales: Tensor
    biases: Tensor

    def __init__(self, rows: int, features: int) -> None:
        super().__init__()
        self.rows = int(rows)
        self.spec = _spec(features)
        self.register_buffer(
            "weight", torch.zeros(self.rows, self.spec.packed_cols, dtype=torch.int32)
        )
        self.register_buffer("scales", torch.zeros(self.rows, self.spec.groups))
        self.register_buffer("biases", torch.zeros(self.rows, self.spec.groups))

    def set_weights(self, weight: Tensor, scales: Tensor, biases: Tensor) -> None:
        """Install packed weights after checking the storage geometry."""
        expected = {
            "weight": (self.rows, self.spec.packed_cols),
            "scales": (self.rows, self.spec.groups),
            "biases": (self.rows, self.spec.groups),
        }
        for name, tensor in (("weight", weight), ("scales", scales), ("biases", biases)):
            if tuple(tensor.shape) != expected[name]:
                raise ValueError(
                    f"{name} shape mismatch: expected {expected[name]}, "
                    f"got {tuple(tensor.shape)}"
                )
        device = self.weight.device
        self.weight = to_int32_words(weight).to(device)
        self.scales = scales.to(device=device, dtype=torch.float32)
        self.biases = biases.to(device=device, dtype=torch.float32)

    def set_dense(self, weight: Tensor) -> None:
        """Quantize a dense (rows, features) matrix into this storage."""
        self.set_weights(*quantize(weight, self.spec.group_size, self.spec.bits))

    def dequantized(self) -> Tensor:
        """Full float32 matrix; transient, never stored."""
        return dequantize(
            self.weight, self.scales, self.biases, self.spec.group_size, self.spec.bits
        )


class QuantizedLinear(QuantizedStorage):
    """Bias-free linear projection over 4-bit group-quantized weights."""

    def __init__(self, d_in: int, d_out: int) -> None:
        super().__init__(rows=d_out, features=d_in)
        self.d_in = int(d_in)
        self.d_out = int(d_out)

    @override
    def forward(self, x: Tensor) -> Tensor:
        """Dequantize, then project: (..., d_in) -> (..., d_out)."""
        if int(x.shape[-1]) != self.d_in:
            raise ValueError(f"Expected last dim {self.d_in}, got {tuple(x.shape)}")
        return F.linear(x, self.dequantized().to(dtype=x.dtype))


class QuantizedEmbedding(QuantizedStorage):
    """Token embedding table stored 4-bit quantized.

    Only the rows for the requested ids are gathered and dequantized.
    """

    def __init__(self, vocab_size: int, d_model: int) -> None:
        super().__init__(rows=vocab_size, features=d_model)
        self.vocab_size = int(vocab_size)
        self.d_model = int(d_model)

    @override
    def forward(self, ids: Tensor) -> Tensor:
        """Look up (B, T) token ids -> (B, T, d_model) float32 embeddings."""
        flat = ids.reshape(-1).long()
        rows = dequantize(
            self.weight[flat],
            self.scales[flat],
            self.biases[flat],
            self.spec.group_size,
            self.spec.bits,
        )
        return rows.reshape(*ids.shape, self.d_model)
