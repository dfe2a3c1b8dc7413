"""
checkpoint_test provides tests for CheckpointLoader.
"""
from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

import torch
from safetensors.torch import save_file

from emovec.errors import WeightsMissing
from emovec.loader.checkpoint import CheckpointLoader


class CheckpointLoaderTest(unittest.TestCase):
    """
    CheckpointLoaderTest covers shard discovery, merging, and prefix stripping.
    """

    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.folder = Path(self.tmp.name)

    def test_strips_prefix_and_merges_shards(self) -> None:
        save_file({"model.norm.weight": torch.ones(4)}, str(self.folder / "a.safetensors"))
        save_file(
            {"model.embed_tokens.scales": torch.zeros(2, 1), "lm_extra": torch.zeros(1)},
            str(self.folder / "b.safetensors"),
        )
        state = CheckpointLoader().load(self.folder)
        self.assertEqual(sorted(state), ["embed_tokens.scales", "lm_extra", "norm.weight"])
        self.assertTrue(torch.equal(state["norm.weight"], torch.ones(4)))

    def test_files_are_sorted(self) -> None:
        for name in ("model-00002.safetensors", "model-00001.safetensors"):
            save_file({name: torch.zeros(1)}, str(self.folder / name))
        files = CheckpointLoader().files(self.folder)
        self.assertEqual([f.name for f in files], ["model-00001.safetensors", "model-00002.safetensors"])

    def test_empty_folder_raises(self) -> None:
        with self.assertRaises(WeightsMissing):
            CheckpointLoader().load(self.folder)

    def test_duplicate_keys_across_shards_raise(self) -> None:
        save_file({"model.norm.weight": torch.ones(4)}, str(self.folder / "a.safetensors"))
        save_file({"norm.weight": torch.ones(4)}, str(self.folder / "b.safetensors"))
        with self.assertRaises(ValueError):
            CheckpointLoader().load(self.folder)

    def test_corrupt_shard_is_weights_missing(self) -> None:
        (self.folder / "model.safetensors").write_bytes(b"not a safetensors file")
        with self.assertRaises(WeightsMissing) as ctx:
            CheckpointLoader().load(self.folder)
        self.assertIn("model.safetensors", str(ctx.exception))

    def test_custom_prefix(self) -> None:
        self.assertEqual(CheckpointLoader(prefix="").strip("model.x"), "model.x")
        self.assertEqual(CheckpointLoader(prefix="encoder.").strip("encoder.x"), "x")


if __name__ == "__main__":
    unittest.main()
