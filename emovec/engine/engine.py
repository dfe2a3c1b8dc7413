"""EmbeddingEngine: owns the resident model and turns text into vectors.

The engine holds exactly one owned resource, a LoadedModel (transformer,
tokenizer, config), with an explicit load/unload lifecycle. Embedding runs
tokenization, a single forward pass, and last-token pooling: the vector is
the final position's hidden state, which is what Qwen3 embedding models
are trained to produce.

The engine keeps no per-call mutable state, but it does no locking either:
concurrent embed() calls on one instance must be serialized by the caller.
"""
from __future__ import annotations

import asyncio
import enum
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import torch
from torch import Tensor

from emovec.config.engine import EngineConfig
from emovec.config.model import ModelConfig
from emovec.console import logger
from emovec.errors import NotLoaded
from emovec.loader.checkpoint import CheckpointLoader
from emovec.loader.hub import HubResolver
from emovec.loader.tokenizer import HFTokenizer, Tokenizer
from emovec.loader.weights import WeightLoader
from emovec.model.transformer import Transformer

ProgressCallback = Callable[[str], None]


class EngineStatus(str, enum.Enum):
    """Lifecycle state of an EmbeddingEngine."""

    NOT_LOADED = "not_loaded"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


@dataclass(frozen=True)
class LoadedModel:
    """The resident model resources, replaced as a unit."""

    model: Transformer
    tokenizer: Tokenizer
    config: ModelConfig


def format_input(text: str, instruction: str | None) -> str:
    """Apply the instruction prompt format used by Qwen3 embedding models."""
    if instruction is None:
        return text
    return f"Instruct: {instruction}\nQuery:{text}"


def finalize(t: Tensor) -> list[float]:
    """Force pending device work to finish, then copy out plain floats."""
    if t.device.type == "cuda":
        torch.cuda.synchronize(t.device)
    elif t.device.type == "mps":
        torch.mps.synchronize()
    return t.detach().to(device="cpu", dtype=torch.float32).tolist()


class EmbeddingEngine:
    """Loads a quantized Qwen3 embedding model and embeds text with it."""

    def __init__(
        self,
        config: EngineConfig | None = None,
        *,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        self.config = config if config is not None else EngineConfig()
        self.on_progress = on_progress
        self.status = EngineStatus.NOT_LOADED
        self.progress_message = ""
        self.error_message: str | None = None
        self._loaded: LoadedModel | None = None

    # ─────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────────

    @property
    def is_loaded(self) -> bool:
        return self._loaded is not None

    @property
    def resources(self) -> LoadedModel | None:
        return self._loaded

    def _report(self, message: str) -> None:
        self.progress_message = message
        logger.info(message)
        if self.on_progress is not None:
            self.on_progress(message)

    def load(self, model_dir: Path | None = None) -> bool:
        """Resolve, build, and install the model; returns True when loaded.

        A load already in progress, or an engine already loaded, makes this
        a no-op. Failures are recorded in `error_message` and leave the
        engine unloaded.
        """
        if self.status in (EngineStatus.LOADING, EngineStatus.LOADED):
            return self.is_loaded

        self.status = EngineStatus.LOADING
        self.error_message = None
        self._report("Initializing")
        try:
            self._loaded = self._build(model_dir or self.config.model_dir)
        except Exception as e:
            self._loaded = None
            self.status = EngineStatus.FAILED
            self.error_message = f"Model load failed: {e}"
            self.progress_message = ""
            logger.error(self.error_message)
            return False
        finally:
            if self.status == EngineStatus.LOADING and self._loaded is None:
                self.status = EngineStatus.NOT_LOADED

        self.status = EngineStatus.LOADED
        self._report("Loaded")
        logger.key_value(
            {
                "layers": self._loaded.config.num_hidden_layers,
                "hidden_size": self._loaded.config.hidden_size,
                "memory_mb": self.memory_mb,
            },
            title="Model",
        )
        return True

    async def load_async(self, model_dir: Path | None = None) -> bool:
        """Run load() on a worker thread so an event loop stays responsive."""
        return await asyncio.to_thread(self.load, model_dir)

    def _build(self, model_dir: Path | None) -> LoadedModel:
        folder = HubResolver(
            repo_id=self.config.model_id,
            local_dir=model_dir,
            revision=self.config.revision,
            cache_dir=self.config.cache_dir,
            progress=self._report,
        ).resolve()

        self._report("Reading configuration")
        config = ModelConfig.from_file(folder / "config.json")

        self._report("Loading tokenizer")
        tokenizer = HFTokenizer(folder)

        self._report("Building model")
        model = Transformer(config)

        self._report("Reading weights")
        state = CheckpointLoader(prefix=self.config.weight_prefix).load(folder)

        self._report("Applying weights")
        unused = WeightLoader(model, state).apply()
        if unused:
            logger.warning(f"Ignored {len(unused)} checkpoint tensors (e.g. {unused[0]})")

        model = model.to(self.config.device).eval()
        return LoadedModel(model=model, tokenizer=tokenizer, config=config)

    def attach(self, model: Transformer, tokenizer: Tokenizer) -> None:
        """Install an already-built model and tokenizer."""
        model = model.to(self.config.device).eval()
        self._loaded = LoadedModel(model=model, tokenizer=tokenizer, config=model.config)
        self.status = EngineStatus.LOADED
        self.error_message = None
        self.progress_message = "Loaded"

    def unload(self) -> None:
        """Release the model and tokenizer."""
        self._loaded = None
        self.status = EngineStatus.NOT_LOADED
        self.progress_message = ""

    @property
    def memory_mb(self) -> int:
        """Resident weight memory in MiB (0 when unloaded)."""
        if self._loaded is None:
            return 0
        return self._loaded.model.memory_bytes() // (1024 * 1024)

    # ─────────────────────────────────────────────────────────────────────
    # Embedding
    # ─────────────────────────────────────────────────────────────────────

    def embed(
        self,
        text: str,
        instruction: str | None = None,
        dimension: int | None = None,
    ) -> list[float]:
        """Embed one text.

        Args:
            text: Input text
            instruction: Overrides the configured default instruction
            dimension: Overrides the configured target dimension

        Returns:
            The last-token embedding, or [] when the text tokenizes to nothing.

        Raises:
            NotLoaded: no model is resident.
        """
        loaded = self._loaded
        if loaded is None:
            raise NotLoaded()

        active_instruction = (
            instruction if instruction is not None else self.config.default_instruction
        )
        active_dimension = dimension if dimension is not None else self.config.target_dimension
        if active_dimension <= 0:
            raise ValueError(f"dimension must be positive, got {active_dimension}")

        tokens = loaded.tokenizer.encode(format_input(text, active_instruction))
        if not tokens:
            return []

        device = next(loaded.model.buffers()).device
        input_ids = torch.tensor([tokens], dtype=torch.long, device=device)
        with torch.inference_mode():
            hidden = loaded.model(input_ids, target_dimension=active_dimension)
            embedding = hidden[0, -1]
        return finalize(embedding)

    def embed_many(
        self,
        texts: list[str],
        instruction: str | None = None,
        dimension: int | None = None,
    ) -> list[list[float]]:
        """Embed several texts one after another."""
        return [self.embed(t, instruction=instruction, dimension=dimension) for t in texts]
