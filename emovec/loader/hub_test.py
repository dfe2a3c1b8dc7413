"""
hub_test provides tests for HubResolver.
"""
from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from unittest import mock

from emovec.errors import WeightsMissing
from emovec.loader.hub import METADATA_FILES, WEIGHT_PATTERNS, HubResolver


class HubResolverTest(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.folder = Path(self.tmp.name)

    def test_local_folder_wins(self) -> None:
        with mock.patch("emovec.loader.hub.snapshot_download") as download:
            folder = HubResolver(repo_id="org/model", local_dir=self.folder).resolve()
        self.assertEqual(folder, self.folder)
        download.assert_not_called()

    def test_downloads_metadata_then_weights(self) -> None:
        calls: list[list[str]] = []

        def fake_download(**kwargs: object) -> str:
            calls.append(list(kwargs["allow_patterns"]))  # type: ignore[arg-type]
            return str(self.folder)

        with mock.patch("emovec.loader.hub.snapshot_download", side_effect=fake_download):
            HubResolver(repo_id="org/model", local_dir=self.folder / "absent").resolve()
        self.assertEqual(calls, [METADATA_FILES, WEIGHT_PATTERNS])

    def test_skips_weight_download_when_present(self) -> None:
        (self.folder / "model.safetensors").write_bytes(b"")
        with mock.patch(
            "emovec.loader.hub.snapshot_download", return_value=str(self.folder)
        ) as download:
            HubResolver(repo_id="org/model").resolve()
        self.assertEqual(download.call_count, 1)

    def test_download_failure_is_weights_missing(self) -> None:
        with mock.patch(
            "emovec.loader.hub.snapshot_download", side_effect=OSError("offline")
        ):
            with self.assertRaises(WeightsMissing) as ctx:
                HubResolver(repo_id="org/model").resolve()
        self.assertIn("offline", str(ctx.exception))

    def test_empty_repo_id_rejected(self) -> None:
        with self.assertRaises(ValueError):
            HubResolver(repo_id="")


if __name__ == "__main__":
    unittest.main()
