"""Model configuration: the hyperparameters of a Qwen3 embedding checkpoint.

The fields mirror the keys of the checkpoint's `config.json`, so the file
validates straight into a ModelConfig. Extra keys (architectures,
torch_dtype, quantization, ...) are ignored.
"""
from __future__ import annotations

import json
from pathlib import Path

from pydantic import ConfigDict, ValidationError, model_validator

from emovec.config import Config, PositiveFloat, PositiveInt, ValidationType
from emovec.errors import ConfigInvalid


class ModelConfig(Config):
    """Immutable architecture description, loaded once per model build."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    hidden_size: PositiveInt
    num_hidden_layers: PositiveInt
    intermediate_size: PositiveInt
    num_attention_heads: PositiveInt
    num_key_value_heads: PositiveInt
    head_dim: PositiveInt
    rms_norm_eps: PositiveFloat
    vocab_size: PositiveInt
    rope_theta: PositiveFloat
    max_position_embeddings: PositiveInt

    @model_validator(mode="after")
    def _check_heads(self) -> "ModelConfig":
        Config.check(
            self.num_key_value_heads,
            ValidationType.SHOULD_DIVIDE,
            self.num_attention_heads,
        )
        Config.check(self.head_dim, ValidationType.SHOULD_BE_EVEN)
        return self

    @property
    def group_count(self) -> int:
        """Query heads sharing each key/value head."""
        return self.num_attention_heads // self.num_key_value_heads

    @classmethod
    def from_file(cls, path: str | Path) -> "ModelConfig":
        """Parse and validate a `config.json`.

        Raises:
            ConfigInvalid: the file is missing, is not JSON, or a field is
                missing or has the wrong type. The message names the field.
        """
        path = Path(path)
        if not path.is_file():
            raise ConfigInvalid(f"config.json not found at {path}")
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigInvalid(f"Could not read {path}: {e}") from e
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: object) -> "ModelConfig":
        """Validate a decoded config mapping, translating pydantic errors."""
        if not isinstance(data, dict):
            raise ConfigInvalid(f"Expected a JSON object, got {type(data).__name__}")
        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigInvalid(describe_validation_error(e)) from e


def describe_validation_error(error: ValidationError) -> str:
    """Summarize the first pydantic error as a field-level message."""
    first = error.errors()[0]
    path = ".".join(str(part) for part in first.get("loc", ())) or "<root>"
    if first.get("type") == "missing":
        return f"Missing field: {path}"
    return f"Invalid value at {path}: {first.get('msg', 'validation failed')}"
