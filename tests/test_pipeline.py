from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from helpers import FakeProcess, build_settings, build_source_tree
from selfbuild.builder.pipeline import ReleasePipeline, ReleaseRequest
from selfbuild.common.errors import ManifestError, PostconditionError, PreconditionError
from selfbuild.common.hashing import fingerprint_file


MANIFEST = [
    {
        "name": "platform.phar",
        "sha1": "aa",
        "sha256": "bb",
        "url": "https://example.com/download/v3.9.0/platform.phar",
        "version": "3.9.0",
        "runtime": {"min": "5.5.9"},
    },
    {"name": "platform.phar", "sha1": "cc", "sha256": "dd", "version": "3.8.10"},
]


def _fake_tools(output: Path, changelog: str = "* Fix a bug", build_writes: bool = True):
    def on_run(cmd: list[str]) -> str:
        if cmd[0] == "box" and build_writes:
            output.write_bytes(b"packaged cli")
        if cmd[0] == "git":
            return changelog
        return ""

    return on_run


class ReleasePipelineTests(unittest.TestCase):
    def test_full_release(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            source = build_source_tree(root, MANIFEST)
            output = root / "platform.phar"
            process = FakeProcess(source, on_run=_fake_tools(output))
            manifest_path = source / "dist" / "manifest.json"

            result = ReleasePipeline(build_settings(source), process).run(
                ReleaseRequest(output=output, manifest_path=manifest_path)
            )

            self.assertEqual([c[0] for c in process.calls], ["composer", "box", "git"])
            self.assertEqual(result.artifact, output.resolve())
            self.assertEqual(result.fingerprint, fingerprint_file(output))
            self.assertEqual(result.entry_index, 0)

            saved = json.loads(manifest_path.read_text(encoding="utf-8"))
            self.assertEqual(len(saved), 2)
            entry = saved[0]
            self.assertEqual(entry["version"], "3.10.0")
            self.assertEqual(entry["sha256"], result.fingerprint.sha256)
            self.assertEqual(entry["url"], "https://example.com/download/v3.10.0/platform.phar")
            self.assertEqual(entry["updating"], [{"notes": "* Fix a bug", "show_from": "3.9.0", "hide_from": "3.10.0"}])
            self.assertEqual(saved[1], MANIFEST[1])

    def test_dependency_stage_can_be_skipped(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            source = build_source_tree(root, MANIFEST)
            output = root / "platform.phar"
            process = FakeProcess(source, on_run=_fake_tools(output, changelog=""))

            ReleasePipeline(build_settings(source), process).run(
                ReleaseRequest(
                    output=output,
                    manifest_path=source / "dist" / "manifest.json",
                    policy="add",
                    skip_dependencies=True,
                )
            )

            self.assertEqual([c[0] for c in process.calls], ["box", "git"])
            saved = json.loads((source / "dist" / "manifest.json").read_text(encoding="utf-8"))
            self.assertEqual(len(saved), 3)
            self.assertEqual(saved[0]["version"], "3.10.0")
            self.assertNotIn("updating", saved[0])

    def test_missing_artifact_leaves_manifest_untouched(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            source = build_source_tree(root, MANIFEST)
            manifest_path = source / "dist" / "manifest.json"
            before = manifest_path.read_bytes()
            output = root / "platform.phar"
            process = FakeProcess(source, on_run=_fake_tools(output, build_writes=False))

            with self.assertRaises(PostconditionError):
                ReleasePipeline(build_settings(source), process).run(
                    ReleaseRequest(output=output, manifest_path=manifest_path)
                )
            self.assertEqual(manifest_path.read_bytes(), before)

    def test_bogus_policy_fails_before_any_command(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            source = build_source_tree(root, MANIFEST)
            process = FakeProcess(source, on_run=_fake_tools(root / "platform.phar"))

            with self.assertRaises(ManifestError):
                ReleasePipeline(build_settings(source), process).run(
                    ReleaseRequest(
                        output=root / "platform.phar",
                        manifest_path=source / "dist" / "manifest.json",
                        policy="bogus",
                    )
                )
            self.assertEqual(process.calls, [])

    def test_empty_manifest_update_latest_fails_before_build(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            source = build_source_tree(root, [])
            process = FakeProcess(source, on_run=_fake_tools(root / "platform.phar"))
            with self.assertRaises(ManifestError):
                ReleasePipeline(build_settings(source), process).run(
                    ReleaseRequest(output=root / "platform.phar", manifest_path=source / "dist" / "manifest.json")
                )
            self.assertEqual(process.calls, [])

    def test_existing_output_requires_overwrite(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            source = build_source_tree(root, MANIFEST)
            output = root / "platform.phar"
            output.write_bytes(b"previous build")
            process = FakeProcess(source, on_run=_fake_tools(output))
            with self.assertRaises(PreconditionError):
                ReleasePipeline(build_settings(source), process).run(
                    ReleaseRequest(output=output, manifest_path=source / "dist" / "manifest.json")
                )
            self.assertEqual(process.calls, [])

    def test_overwrite_is_not_asked_when_manifest_is_rejected(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            source = build_source_tree(root, MANIFEST)
            output = root / "platform.phar"
            output.write_bytes(b"previous build")
            asked: list[Path] = []
            process = FakeProcess(source, on_run=_fake_tools(output))

            with self.assertRaises(ManifestError):
                ReleasePipeline(build_settings(source), process).run(
                    ReleaseRequest(
                        output=output,
                        manifest_path=source / "dist" / "manifest.json",
                        policy="bogus",
                        confirm_overwrite=lambda path: asked.append(path) or True,
                    )
                )
            self.assertEqual(asked, [])
            self.assertEqual(process.calls, [])

    def test_confirmed_overwrite_builds(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            source = build_source_tree(root, MANIFEST)
            output = root / "platform.phar"
            output.write_bytes(b"previous build")
            asked: list[Path] = []
            process = FakeProcess(source, on_run=_fake_tools(output))

            result = ReleasePipeline(build_settings(source), process).run(
                ReleaseRequest(
                    output=output,
                    manifest_path=source / "dist" / "manifest.json",
                    confirm_overwrite=lambda path: asked.append(path) or True,
                )
            )
            self.assertEqual(asked, [output])
            self.assertEqual(output.read_bytes(), b"packaged cli")
            self.assertEqual(result.fingerprint, fingerprint_file(output))

    def test_declined_overwrite_fails_before_any_command(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            source = build_source_tree(root, MANIFEST)
            output = root / "platform.phar"
            output.write_bytes(b"previous build")
            process = FakeProcess(source, on_run=_fake_tools(output))
            with self.assertRaises(PreconditionError):
                ReleasePipeline(build_settings(source), process).run(
                    ReleaseRequest(
                        output=output,
                        manifest_path=source / "dist" / "manifest.json",
                        confirm_overwrite=lambda path: False,
                    )
                )
            self.assertEqual(process.calls, [])
            self.assertEqual(output.read_bytes(), b"previous build")

    def test_manifest_write_failure_keeps_artifact(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            source = build_source_tree(root, MANIFEST)
            manifest_path = source / "dist" / "manifest.json"
            before = manifest_path.read_bytes()
            output = root / "platform.phar"
            process = FakeProcess(source, on_run=_fake_tools(output))

            with patch.object(Path, "replace", side_effect=OSError("Read-only file system")):
                with self.assertRaises(ManifestError):
                    ReleasePipeline(build_settings(source), process).run(
                        ReleaseRequest(output=output, manifest_path=manifest_path)
                    )
            self.assertTrue(output.exists())
            self.assertEqual(manifest_path.read_bytes(), before)


if __name__ == "__main__":
    unittest.main()
