"""
engine_test provides tests for EmbeddingEngine.
"""
from __future__ import annotations

import asyncio
import json
import math
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from safetensors.torch import save_file

from emovec.config.engine import EngineConfig
from emovec.engine import EmbeddingEngine, EngineStatus, format_input
from emovec.errors import NotLoaded
from emovec.similarity import cosine
from emovec.testing import CharTokenizer, tiny_config, tiny_engine, tiny_model


class FormatInputTest(unittest.TestCase):
    def test_instruction_prompt(self) -> None:
        self.assertEqual(
            format_input("happy", "Find emotions"),
            "Instruct: Find emotions\nQuery:happy",
        )

    def test_no_instruction_is_raw_text(self) -> None:
        self.assertEqual(format_input("happy", None), "happy")


class EmbedTest(unittest.TestCase):
    """
    EmbedTest covers embedding with an attached tiny model.
    """

    def setUp(self) -> None:
        self.engine = tiny_engine(seed=5)

    def test_not_loaded_raises(self) -> None:
        with self.assertRaises(NotLoaded):
            EmbeddingEngine().embed("hello")

    def test_full_width_vector(self) -> None:
        vector = self.engine.embed("hello")
        self.assertEqual(len(vector), 64)
        self.assertTrue(all(isinstance(v, float) for v in vector))

    def test_identical_texts_are_identical(self) -> None:
        a = self.engine.embed("calm")
        b = self.engine.embed("calm")
        self.assertEqual(a, b)
        self.assertAlmostEqual(cosine(a, b), 1.0, places=5)

    def test_dimension_override_is_unit_norm(self) -> None:
        vector = self.engine.embed("angry", dimension=32)
        self.assertEqual(len(vector), 32)
        self.assertAlmostEqual(math.sqrt(sum(v * v for v in vector)), 1.0, places=3)

    def test_configured_dimension(self) -> None:
        engine = tiny_engine(seed=5, target_dimension=32)
        self.assertEqual(len(engine.embed("angry")), 32)

    def test_empty_text_gives_empty_vector(self) -> None:
        self.assertEqual(self.engine.embed(""), [])

    def test_instruction_changes_the_vector(self) -> None:
        plain = self.engine.embed("sad")
        instructed = self.engine.embed("sad", instruction="Classify the emotion")
        self.assertNotEqual(plain, instructed)

    def test_default_instruction_applies(self) -> None:
        engine = tiny_engine(seed=5, default_instruction="Classify the emotion")
        self.assertEqual(
            engine.embed("sad"),
            self.engine.embed("sad", instruction="Classify the emotion"),
        )

    def test_non_positive_dimension_rejected(self) -> None:
        with self.assertRaises(ValueError):
            self.engine.embed("sad", dimension=0)

    def test_embed_many(self) -> None:
        vectors = self.engine.embed_many(["a", "bb"])
        self.assertEqual(len(vectors), 2)
        self.assertEqual(vectors[0], self.engine.embed("a"))


class LifecycleTest(unittest.TestCase):
    """
    LifecycleTest covers load, failure, attach, and unload.
    """

    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.folder = Path(self.tmp.name)

    def write_checkpoint(self) -> None:
        config = tiny_config().model_dump()
        config["architectures"] = ["Qwen3ForCausalLM"]
        (self.folder / "config.json").write_text(json.dumps(config), encoding="utf-8")
        state = {
            f"model.{k}": v.detach().clone().contiguous()
            for k, v in tiny_model(seed=6).state_dict().items()
        }
        save_file(state, str(self.folder / "model.safetensors"))

    def test_load_from_local_folder(self) -> None:
        self.write_checkpoint()
        messages: list[str] = []
        engine = EmbeddingEngine(EngineConfig(model_dir=self.folder), on_progress=messages.append)
        with mock.patch("emovec.engine.engine.HFTokenizer", return_value=CharTokenizer()):
            self.assertTrue(engine.load())
        self.assertEqual(engine.status, EngineStatus.LOADED)
        self.assertIn("Reading weights", messages)
        self.assertEqual(messages[-1], "Loaded")
        self.assertEqual(len(engine.embed("joy")), 64)

        reference = tiny_engine(seed=6)
        self.assertAlmostEqual(cosine(engine.embed("joy"), reference.embed("joy")), 1.0, places=5)

    def test_missing_config_fails(self) -> None:
        engine = EmbeddingEngine(EngineConfig(model_dir=self.folder))
        self.assertFalse(engine.load())
        self.assertEqual(engine.status, EngineStatus.FAILED)
        self.assertFalse(engine.is_loaded)
        self.assertIsNotNone(engine.error_message)
        assert engine.error_message is not None
        self.assertIn("config.json", engine.error_message)
        with self.assertRaises(NotLoaded):
            engine.embed("joy")

    def test_corrupt_weights_fail_again_on_retry(self) -> None:
        self.write_checkpoint()
        (self.folder / "model.safetensors").write_bytes(b"\x00" * 3 + b"garbage")
        engine = EmbeddingEngine(EngineConfig(model_dir=self.folder))
        with mock.patch("emovec.engine.engine.HFTokenizer", return_value=CharTokenizer()):
            self.assertFalse(engine.load())
            self.assertEqual(engine.status, EngineStatus.FAILED)
            self.assertFalse(engine.load())
        self.assertEqual(engine.status, EngineStatus.FAILED)
        assert engine.error_message is not None
        self.assertIn("model.safetensors", engine.error_message)

    def test_unexpected_build_error_fails_the_load(self) -> None:
        engine = EmbeddingEngine(EngineConfig(model_dir=self.folder))
        with mock.patch.object(engine, "_build", side_effect=KeyError("tokenizer.json")):
            self.assertFalse(engine.load())
        self.assertEqual(engine.status, EngineStatus.FAILED)
        self.assertFalse(engine.is_loaded)
        self.write_checkpoint()
        with mock.patch("emovec.engine.engine.HFTokenizer", return_value=CharTokenizer()):
            self.assertTrue(engine.load())
        self.assertEqual(engine.status, EngineStatus.LOADED)

    def test_load_async(self) -> None:
        self.write_checkpoint()
        engine = EmbeddingEngine(EngineConfig(model_dir=self.folder))
        with mock.patch("emovec.engine.engine.HFTokenizer", return_value=CharTokenizer()):
            self.assertTrue(asyncio.run(engine.load_async()))
        self.assertTrue(engine.is_loaded)

    def test_load_is_a_no_op_when_loaded(self) -> None:
        engine = tiny_engine()
        model = engine.resources
        self.assertTrue(engine.load(Path("/nonexistent")))
        self.assertIs(engine.resources, model)

    def test_unload(self) -> None:
        engine = tiny_engine()
        self.assertGreaterEqual(engine.memory_mb, 0)
        engine.unload()
        self.assertEqual(engine.status, EngineStatus.NOT_LOADED)
        self.assertEqual(engine.memory_mb, 0)
        with self.assertRaises(NotLoaded):
            engine.embed("joy")


if __name__ == "__main__":
    unittest.main()
