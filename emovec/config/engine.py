"""Engine and store configuration.

EngineConfig describes where the model comes from and how embeddings are
shaped by default; StoreConfig describes where the vector cache lives and
how often index builds report progress.
"""
from __future__ import annotations

from pathlib import Path

from pydantic import ConfigDict, Field, field_validator

from emovec.config import Config, PositiveInt

DEFAULT_MODEL_ID = "mlx-community/Qwen3-Embedding-0.6B-4bit-DWQ"

# Matryoshka prefixes the Qwen3 embedding models were trained to support.
SUPPORTED_DIMENSIONS = (32, 64, 128, 256, 512, 768, 1024)


def default_cache_path() -> Path:
    return Path.home() / ".cache" / "emovec" / "emotion_vectors.json"


class EngineConfig(Config):
    """Settings for an EmbeddingEngine.

    `model_dir` wins over `model_id` when it exists locally; otherwise the
    files are fetched from the Hub into `cache_dir`.
    """

    model_config = ConfigDict(protected_namespaces=())

    model_id: str = DEFAULT_MODEL_ID
    model_dir: Path | None = None
    cache_dir: Path | None = None
    revision: str | None = None
    default_instruction: str | None = None
    target_dimension: PositiveInt = 1024
    device: str = "cpu"
    weight_prefix: str = "model."

    @field_validator("target_dimension")
    @classmethod
    def _supported_dimension(cls, v: int) -> int:
        if v not in SUPPORTED_DIMENSIONS:
            raise ValueError(
                f"target_dimension must be one of {SUPPORTED_DIMENSIONS}, got {v}"
            )
        return v

    @field_validator("default_instruction")
    @classmethod
    def _blank_instruction(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            return None
        return v


class StoreConfig(Config):
    """Settings for a VectorStore."""

    cache_path: Path = Field(default_factory=default_cache_path)
    progress_every: PositiveInt = 10
