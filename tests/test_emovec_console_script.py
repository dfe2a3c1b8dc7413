"""
Packaging checks: the declared console script and dependencies match the code.
"""
import importlib
import re
import sys
import unittest
from pathlib import Path
from typing import Any, cast

if sys.version_info >= (3, 11):
    import tomllib
else:  # pragma: no cover
    tomllib = cast(Any, importlib.import_module("tomli"))

REPO = Path(__file__).resolve().parents[1]


def load_project() -> dict[str, Any]:
    with (REPO / "pyproject.toml").open("rb") as f:
        return tomllib.load(f)["project"]


def requirement_names(requirements: list[str]) -> set[str]:
    """Distribution names without version specifiers or markers."""
    return {re.split(r"[<>=!~;\[ ]", r, maxsplit=1)[0].strip().lower() for r in requirements}


class TestEmovecPackaging(unittest.TestCase):
    def test_console_script_resolves_to_callable(self) -> None:
        target = load_project()["scripts"]["emovec"]
        module_name, _, attr = target.partition(":")
        self.assertEqual(module_name, "emovec.__main__")
        entry = getattr(importlib.import_module(module_name), attr)
        self.assertTrue(callable(entry))

    def test_runtime_dependencies_cover_imported_libraries(self) -> None:
        names = requirement_names(load_project()["dependencies"])
        for required in (
            "torch",
            "pydantic",
            "rich",
            "safetensors",
            "huggingface_hub",
            "transformers",
            "typing_extensions",
        ):
            self.assertIn(required, names)

    def test_test_extra_declares_pytest(self) -> None:
        extras = load_project()["optional-dependencies"]["test"]
        self.assertIn("pytest", requirement_names(extras))

    def test_version_matches_cli(self) -> None:
        from contextlib import redirect_stdout
        from io import StringIO

        from emovec.cli import CLI

        out = StringIO()
        with redirect_stdout(out), self.assertRaises(SystemExit):
            CLI().parse_args(["--version"])
        self.assertEqual(out.getvalue().split(), ["emovec", load_project()["version"]])


if __name__ == "__main__":
    unittest.main()
