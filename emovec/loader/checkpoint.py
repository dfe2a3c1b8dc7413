"""Reading safetensors checkpoints into a flat state dict.

MLX exports store each model as one or more `*.safetensors` shards whose
keys start with `model.`. All shards in a folder are merged and the prefix
is stripped so the keys line up with the transformer's parameter paths.
"""
from __future__ import annotations

from pathlib import Path

from safetensors import SafetensorError
from safetensors.torch import load_file
from torch import Tensor

from emovec.errors import WeightsMissing


class CheckpointLoader:
    """Loads and merges safetensors shards."""

    def __init__(self, prefix: str = "model.") -> None:
        self.prefix = prefix

    def files(self, folder: Path) -> list[Path]:
        """All safetensors shards under folder, in a stable order."""
        return sorted(Path(folder).rglob("*.safetensors"))

    def load_safetensors(self, path: Path) -> dict[str, Tensor]:
        """Load one shard onto the CPU.

        Raises:
            WeightsMissing: the shard is not a readable safetensors file.
        """
        try:
            return load_file(str(path), device="cpu")
        except SafetensorError as e:
            raise WeightsMissing(f"Unreadable weight file {path}: {e}") from e

    def strip(self, key: str) -> str:
        if self.prefix and key.startswith(self.prefix):
            return key[len(self.prefix):]
        return key

    def load(self, folder: Path) -> dict[str, Tensor]:
        """Merge every shard in folder into one state dict.

        Raises:
            WeightsMissing: no shard exists or the shards hold no tensors.
        """
        out: dict[str, Tensor] = {}
        for shard in self.files(folder):
            for key, value in self.load_safetensors(shard).items():
                name = self.strip(key)
                if name in out:
                    raise ValueError(f"Duplicate key in shards: {name}")
                out[name] = value
        if not out:
            raise WeightsMissing(f"No weight files (.safetensors) found in {folder}")
        return out
