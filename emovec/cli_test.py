"""
cli_test provides tests for argument parsing into typed commands.
"""
from __future__ import annotations

import unittest
from pathlib import Path

from emovec.cli import CLI
from emovec.command import CompareCommand, EmbedCommand, IndexCommand, SearchCommand


class CLIParseTest(unittest.TestCase):
    """
    CLIParseTest validates that each subcommand yields its payload.
    """

    def test_embed(self) -> None:
        command = CLI().parse_command(["--instruction", "Find feelings", "embed", "joy", "--dim", "256"])
        self.assertIsInstance(command, EmbedCommand)
        assert isinstance(command, EmbedCommand)
        self.assertEqual(command.text, "joy")
        self.assertEqual(command.dimension, 256)
        self.assertEqual(command.engine.default_instruction, "Find feelings")

    def test_compare(self) -> None:
        command = CLI().parse_command(["compare", "happy", "sad", "--whiten"])
        assert isinstance(command, CompareCommand)
        self.assertEqual((command.first, command.second), ("happy", "sad"))
        self.assertTrue(command.whiten)
        self.assertIsNone(command.dimension)

    def test_index(self) -> None:
        command = CLI().parse_command(
            ["--model-dir", "models/qwen3", "index", "emotions.csv", "--cache", "v.json"]
        )
        assert isinstance(command, IndexCommand)
        self.assertEqual(command.csv, Path("emotions.csv"))
        self.assertEqual(command.cache, Path("v.json"))
        self.assertEqual(command.engine.model_dir, Path("models/qwen3"))
        self.assertFalse(command.rebuild)

    def test_index_rebuild_needs_csv(self) -> None:
        with self.assertRaises(ValueError):
            CLI().parse_command(["index", "--rebuild"])

    def test_search(self) -> None:
        command = CLI().parse_command(["--device", "cuda", "search", "elated", "--top-k", "3"])
        assert isinstance(command, SearchCommand)
        self.assertEqual(command.query, "elated")
        self.assertEqual(command.top_k, 3)
        self.assertEqual(command.engine.device, "cuda")

    def test_search_rejects_non_positive_top_k(self) -> None:
        with self.assertRaises(ValueError):
            CLI().parse_command(["search", "elated", "--top-k", "0"])

    def test_unsupported_dimension_exits(self) -> None:
        with self.assertRaises(SystemExit):
            CLI().parse_command(["embed", "joy", "--dim", "100"])

    def test_instruction_is_a_global_option(self) -> None:
        with self.assertRaises(SystemExit):
            CLI().parse_command(["embed", "joy", "--instruction", "Find feelings"])

    def test_no_command(self) -> None:
        with self.assertRaises(ValueError):
            CLI().parse_command([])


if __name__ == "__main__":
    unittest.main()
