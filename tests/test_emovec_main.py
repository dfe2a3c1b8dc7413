import io
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path

from emovec.__main__ import main


class TestEmovecMain(unittest.TestCase):
    """
    TestEmovecMain checks exit codes of the console entrypoint.
    """

    def test_help_exits_zero(self) -> None:
        with redirect_stdout(io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                main(["--help"])
        self.assertEqual(ctx.exception.code, 0)

    def test_model_load_failure_exits_one(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(SystemExit) as ctx:
                main(["--model-dir", tmp, "embed", "joy"])
        self.assertEqual(ctx.exception.code, 1)

    def test_missing_command_exits_one(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            main([])
        self.assertEqual(ctx.exception.code, 1)

    def test_search_without_cache_exits_one(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            cache = Path(tmp) / "none.json"
            with self.assertRaises(SystemExit) as ctx:
                main(["--model-dir", tmp, "search", "joy", "--cache", str(cache)])
        self.assertEqual(ctx.exception.code, 1)


if __name__ == "__main__":
    unittest.main()
