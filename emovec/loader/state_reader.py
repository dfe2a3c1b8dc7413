"""Safe accessors for state_dict contents.

When loading checkpoints a lot can go wrong: missing keys, wrong tensor
shapes, type mismatches. StateReader provides validated access methods that
fail with clear error messages instead of cryptic PyTorch exceptions.
"""
from __future__ import annotations

from torch import Tensor

from emovec.errors import WeightsMissing


class StateReader:
    """Validated access to checkpoint state_dict contents.

    Tracks which keys have been read so unused tensors can be reported.
    """

    def __init__(self, state_dict: dict[str, Tensor]) -> None:
        self.state_dict = state_dict
        self._seen: set[str] = set()

    def key(self, *parts: str) -> str:
        """Join path parts into a dot-separated key.

        Example: key("layers", "0", "mlp", "up_proj") → "layers.0.mlp.up_proj"
        """
        return ".".join(p for p in parts if p)

    def _require_tensor(self, key: str, required: bool) -> Tensor | None:
        if key not in self.state_dict:
            if required:
                raise WeightsMissing(f"Missing state_dict key: {key}")
            return None
        value = self.state_dict[key]
        if not isinstance(value, Tensor):
            raise WeightsMissing(f"Expected tensor for key {key}, got {type(value)!r}")
        self._seen.add(key)
        return value

    def get(self, key: str) -> Tensor:
        """Get a required tensor, raising WeightsMissing if absent."""
        result = self._require_tensor(key, required=True)
        assert result is not None
        return result

    def get_optional(self, key: str) -> Tensor | None:
        """Get an optional tensor, returning None if absent."""
        return self._require_tensor(key, required=False)

    def unused(self) -> list[str]:
        """Keys that were never read, in sorted order."""
        return sorted(set(self.state_dict) - self._seen)
