"""Fixed 4-bit group quantization geometry.

The embedding checkpoints ship MLX-style affine quantized weights: every
32-bit word packs eight 4-bit values, and each run of 64 consecutive values
in a row shares one scale and one bias. These numbers are properties of the
checkpoint format, not user settings.
"""
from __future__ import annotations

from dataclasses import dataclass

GROUP_SIZE = 64
BITS = 4
WORD_BITS = 32
VALUES_PER_WORD = WORD_BITS // BITS
NIBBLE_MASK = (1 << BITS) - 1


@dataclass(frozen=True)
class QuantSpec:
    """Storage geometry of a quantized [rows, features] matrix."""

    features: int
    group_size: int = GROUP_SIZE
    bits: int = BITS

    @property
    def per_word(self) -> int:
        return WORD_BITS // self.bits

    @property
    def packed_cols(self) -> int:
        return self.features // self.per_word

    @property
    def groups(self) -> int:
        return self.features // self.group_size

    def validate(self) -> None:
        """Raise ValueError unless the features split into whole words and groups."""
        if self.features % self.per_word != 0:
            raise ValueError(
                f"features ({self.features}) must be a multiple of {self.per_word}"
            )
        if self.features % self.group_size != 0:
            raise ValueError(
                f"group_size ({self.group_size}) must divide features ({self.features})"
            )
