"""Resolving a model folder: local directory first, Hugging Face Hub second.

A configured local directory is used as-is (offline mode). Otherwise the
small config/tokenizer files are fetched from the Hub first, and the
safetensors shards only when the snapshot does not already hold them.
"""
from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from huggingface_hub import snapshot_download

from emovec.errors import WeightsMissing

METADATA_FILES = ["config.json", "tokenizer.json", "tokenizer_config.json"]
WEIGHT_PATTERNS = ["*.safetensors"]


class HubResolver:
    """Finds or downloads the files of one model repo."""

    def __init__(
        self,
        *,
        repo_id: str,
        local_dir: Path | None = None,
        revision: str | None = None,
        cache_dir: Path | None = None,
        progress: Callable[[str], None] | None = None,
    ) -> None:
        if not repo_id:
            raise ValueError("repo_id must be non-empty")
        self.repo_id = repo_id
        self.local_dir = local_dir
        self.revision = revision
        self.cache_dir = cache_dir
        self._progress = progress

    def _report(self, message: str) -> None:
        if self._progress is not None:
            self._progress(message)

    def _snapshot(self, patterns: list[str]) -> Path:
        try:
            return Path(
                snapshot_download(
                    repo_id=self.repo_id,
                    revision=self.revision,
                    cache_dir=str(self.cache_dir) if self.cache_dir else None,
                    allow_patterns=patterns,
                )
            )
        except Exception as e:
            raise WeightsMissing(
                f"Failed to download {patterns} from {self.repo_id!r} "
                f"(revision={self.revision!r}): {e}"
            ) from e

    def is_local(self) -> bool:
        return self.local_dir is not None and Path(self.local_dir).is_dir()

    def resolve(self) -> Path:
        """Return a folder holding config, tokenizer, and weight files."""
        if self.is_local():
            assert self.local_dir is not None
            self._report(f"Loading from local folder {self.local_dir}")
            return Path(self.local_dir)

        self._report(f"Fetching configuration from {self.repo_id}")
        folder = self._snapshot(METADATA_FILES)
        if not any(folder.rglob("*.safetensors")):
            self._report("No local weights, downloading from the Hub")
            folder = self._snapshot(WEIGHT_PATTERNS)
        return folder
