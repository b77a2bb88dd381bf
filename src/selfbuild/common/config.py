from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path

from selfbuild.common.errors import PreconditionError


DEFAULT_EXECUTABLE_NAME = "cli"
DEFAULT_RUNTIME_MIN = "5.5.9"
MANIFEST_RELATIVE_PATH = Path("dist") / "manifest.json"


@dataclass(frozen=True)
class BuildSettings:
    source_root: Path
    app_version: str
    executable_name: str = DEFAULT_EXECUTABLE_NAME
    packaging_tool: str = "box"
    dependency_tool: str = "composer"
    base_config_name: str = "box.json"
    dependency_dir_name: str = "vendor"
    runtime_min: str = DEFAULT_RUNTIME_MIN
    changelog_ref: str = "master"
    tag_prefix: str = "v"
    log_dir: Path | None = None

    @classmethod
    def from_env(cls, source_root: Path | None = None, app_version: str | None = None) -> "BuildSettings":
        if source_root is None:
            override_root = os.environ.get("SELFBUILD_SOURCE_ROOT", "").strip()
            source_root = Path(override_root) if override_root else Path.cwd()
        source_root = source_root.resolve()

        if not app_version:
            app_version = os.environ.get("SELFBUILD_APP_VERSION", "").strip() or read_version_file(source_root)

        log_dir_raw = os.environ.get("SELFBUILD_LOG_DIR", "").strip()
        return cls(
            source_root=source_root,
            app_version=app_version,
            executable_name=os.environ.get("SELFBUILD_EXECUTABLE", DEFAULT_EXECUTABLE_NAME),
            packaging_tool=os.environ.get("SELFBUILD_PACKAGING_TOOL", "box"),
            dependency_tool=os.environ.get("SELFBUILD_DEPENDENCY_TOOL", "composer"),
            base_config_name=os.environ.get("SELFBUILD_BASE_CONFIG", "box.json"),
            runtime_min=os.environ.get("SELFBUILD_RUNTIME_MIN", DEFAULT_RUNTIME_MIN),
            changelog_ref=os.environ.get("SELFBUILD_CHANGELOG_REF", "master"),
            log_dir=Path(log_dir_raw) if log_dir_raw else None,
        )

    @property
    def base_config_path(self) -> Path:
        return self.source_root / self.base_config_name

    @property
    def dependency_dir(self) -> Path:
        return self.source_root / self.dependency_dir_name

    @property
    def default_manifest_path(self) -> Path:
        return self.source_root / MANIFEST_RELATIVE_PATH

    def default_output_path(self, cwd: Path) -> Path:
        return (cwd / f"{self.executable_name}.phar").resolve()

    def version_tag(self, version: str) -> str:
        return f"{self.tag_prefix}{version}"


def read_version_file(source_root: Path) -> str:
    path = source_root / "VERSION"
    if not path.exists():
        raise PreconditionError("Application version is not set and no VERSION file was found", path)
    version = path.read_text(encoding="utf-8").strip()
    if not version:
        raise PreconditionError("VERSION file is empty", path)
    return version


def running_from_package() -> bool:
    if getattr(sys, "frozen", False):
        return True
    # Imported from inside a zip application (.pyz) rather than a source tree.
    here = Path(__file__).resolve()
    return any(parent.is_file() for parent in here.parents)
