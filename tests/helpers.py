from __future__ import annotations

import json
from pathlib import Path
from typing import Callable

from selfbuild.builder.process_service import ProcessService
from selfbuild.common.config import BuildSettings


class FakeProcess(ProcessService):
    """Records commands instead of running them."""

    def __init__(self, cwd: Path, on_run: Callable[[list[str]], str | None] | None = None):
        super().__init__(cwd)
        self.calls: list[list[str]] = []
        self.on_run = on_run

    def resolve(self, name: str) -> str:
        return name

    def run(self, cmd, capture: bool = False, cwd: Path | None = None) -> str:
        cmd = [str(part) for part in cmd]
        self.calls.append(cmd)
        if self.on_run is None:
            return ""
        return self.on_run(cmd) or ""


def build_source_tree(root: Path, manifest: list | None = None) -> Path:
    source = root / "src_tree"
    (source / "vendor" / "pkg").mkdir(parents=True, exist_ok=True)
    (source / "dist").mkdir(parents=True, exist_ok=True)
    (source / "box.json").write_text(
        json.dumps({"main": "bin/cli", "output": "cli.phar", "compression": "GZ"}),
        encoding="utf-8",
    )
    (source / "VERSION").write_text("3.10.0\n", encoding="utf-8")
    (source / "dist" / "manifest.json").write_text(json.dumps(manifest or []), encoding="utf-8")
    return source


def build_settings(source_root: Path, app_version: str = "3.10.0") -> BuildSettings:
    return BuildSettings(source_root=source_root, app_version=app_version)


def config_path_from(cmd: list[str]) -> Path | None:
    for part in cmd:
        if part.startswith("--configuration="):
            return Path(part.split("=", 1)[1])
    return None
