"""Command-line interface for emovec.

Commands:
- embed: Embed one text and preview the vector
- compare: Cosine similarity between two texts
- index: Build the emotion-word index from a CSV corpus or the cache
- search: Nearest emotion words for a query text

Model selection (--model-dir, --model-id, --device) and the default
instruction are global options shared by every command.
"""
from __future__ import annotations

import argparse
from pathlib import Path

from pydantic import ValidationError

from emovec.command import (
    Command,
    CompareCommand,
    EmbedCommand,
    IndexCommand,
    SearchCommand,
)
from emovec.config.engine import DEFAULT_MODEL_ID, SUPPORTED_DIMENSIONS, EngineConfig


class _Args(argparse.Namespace):
    """Typed namespace for CLI arguments."""

    command: str | None = None
    model_dir: Path | None = None
    model_id: str = DEFAULT_MODEL_ID
    device: str = "cpu"
    instruction: str | None = None

    text: str = ""
    first: str = ""
    second: str = ""
    query: str = ""
    csv: Path | None = None
    cache: Path | None = None
    dim: int | None = None
    top_k: int = 5
    whiten: bool = False
    rebuild: bool = False


class CLI(argparse.ArgumentParser):
    """Subcommand parser producing typed command payloads."""

    def __init__(self) -> None:
        super().__init__(
            prog="emovec",
            description="emovec - on-device text embeddings and emotion-word search.",
        )

        _ = self.add_argument(
            "--version",
            action="version",
            version="%(prog)s 0.1.0",
            help="Show the version and exit.",
        )
        _ = self.add_argument(
            "--model-dir",
            type=Path,
            default=None,
            dest="model_dir",
            help="Local model folder (config.json, tokenizer, *.safetensors).",
        )
        _ = self.add_argument(
            "--model-id",
            type=str,
            default=DEFAULT_MODEL_ID,
            dest="model_id",
            help="Hugging Face repository to download when --model-dir is not given.",
        )
        _ = self.add_argument(
            "--device",
            type=str,
            default="cpu",
            help="Torch device to run on (cpu, cuda, mps).",
        )
        _ = self.add_argument(
            "--instruction",
            type=str,
            default=None,
            help="Default task instruction prepended to every embedded text.",
        )

        subparsers = self.add_subparsers(
            dest="command",
            parser_class=argparse.ArgumentParser,
        )

        embed_parser = subparsers.add_parser("embed", help="Embed one text.")
        _ = embed_parser.add_argument("text", type=str, help="Text to embed.")
        self._add_dim(embed_parser)

        compare_parser = subparsers.add_parser(
            "compare", help="Cosine similarity between two texts."
        )
        _ = compare_parser.add_argument("first", type=str, help="First text.")
        _ = compare_parser.add_argument("second", type=str, help="Second text.")
        self._add_dim(compare_parser)
        self._add_whiten(compare_parser)

        index_parser = subparsers.add_parser(
            "index", help="Build the emotion-word index."
        )
        _ = index_parser.add_argument(
            "csv",
            type=Path,
            nargs="?",
            default=None,
            help="CSV corpus (label,pleasure,arousal,dominance). Used when no cache exists.",
        )
        self._add_cache(index_parser)
        _ = index_parser.add_argument(
            "--rebuild",
            action="store_true",
            default=False,
            help="Ignore the cache and embed every entry of the CSV again.",
        )

        search_parser = subparsers.add_parser(
            "search", help="Nearest emotion words for a query."
        )
        _ = search_parser.add_argument("query", type=str, help="Query text.")
        _ = search_parser.add_argument(
            "--top-k",
            type=int,
            default=5,
            dest="top_k",
            help="Number of results to show.",
        )
        self._add_cache(search_parser)
        self._add_whiten(search_parser)

    @staticmethod
    def _add_dim(parser: argparse.ArgumentParser) -> None:
        _ = parser.add_argument(
            "--dim",
            type=int,
            default=None,
            choices=SUPPORTED_DIMENSIONS,
            help="Embedding dimension (Matryoshka prefix).",
        )

    @staticmethod
    def _add_whiten(parser: argparse.ArgumentParser) -> None:
        _ = parser.add_argument(
            "--whiten",
            action="store_true",
            default=False,
            help="Whiten vectors before scoring.",
        )

    @staticmethod
    def _add_cache(parser: argparse.ArgumentParser) -> None:
        _ = parser.add_argument(
            "--cache",
            type=Path,
            default=None,
            help="Vector cache file (defaults to ~/.cache/emovec/emotion_vectors.json).",
        )

    def _engine_config(self, args: _Args) -> EngineConfig:
        try:
            return EngineConfig(
                model_id=args.model_id,
                model_dir=args.model_dir,
                device=args.device,
                default_instruction=args.instruction,
            )
        except ValidationError as e:
            raise ValueError(f"Invalid engine options: {e}") from e

    def parse_command(self, argv: list[str] | None = None) -> Command:
        """Parse CLI arguments into a typed command payload."""
        args = self.parse_args(argv, namespace=_Args())

        match args.command:
            case "embed":
                return EmbedCommand(
                    engine=self._engine_config(args),
                    text=args.text,
                    dimension=args.dim,
                )
            case "compare":
                return CompareCommand(
                    engine=self._engine_config(args),
                    first=args.first,
                    second=args.second,
                    dimension=args.dim,
                    whiten=bool(args.whiten),
                )
            case "index":
                if args.csv is None and args.rebuild:
                    raise ValueError("index --rebuild requires a CSV path.")
                return IndexCommand(
                    engine=self._engine_config(args),
                    csv=args.csv,
                    cache=args.cache,
                    rebuild=bool(args.rebuild),
                )
            case "search":
                if args.top_k <= 0:
                    raise ValueError(f"--top-k must be positive, got {args.top_k}")
                return SearchCommand(
                    engine=self._engine_config(args),
                    query=args.query,
                    top_k=args.top_k,
                    cache=args.cache,
                    whiten=bool(args.whiten),
                )
            case None:
                raise ValueError("No command given; see `emovec --help`.")
            case _:
                raise ValueError(f"Invalid command: {args.command}")
