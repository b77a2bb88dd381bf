from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from selfbuild.builder.process_service import ProcessService
from selfbuild.common.config import BuildSettings
from selfbuild.common.errors import PostconditionError, PreconditionError
from selfbuild.common.key_security import validate_signing_key
from selfbuild.common.types import BuildConfig


log = logging.getLogger(__name__)


class BuildService:
    def __init__(self, settings: BuildSettings, process: ProcessService):
        self.settings = settings
        self.process = process

    def resolve_config(
        self,
        output: Path,
        key: Path | None = None,
        extra: dict[str, Any] | None = None,
    ) -> BuildConfig:
        return BuildConfig(
            output=output.resolve(),
            base_path=self.settings.source_root,
            key=validate_signing_key(key) if key is not None else None,
            extra=dict(extra or {}),
        )

    def load_base_config(self) -> dict[str, Any]:
        path = self.settings.base_config_path
        if not path.is_file():
            raise PreconditionError("Build configuration not found", path)
        try:
            with path.open("r", encoding="utf-8-sig") as fh:
                data = json.load(fh)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise PreconditionError(f"Build configuration not readable ({exc})", path) from exc
        if not isinstance(data, dict):
            raise PreconditionError("Build configuration must be a JSON object", path)
        return data

    def merged_config(self, config: BuildConfig) -> dict[str, Any]:
        merged = self.load_base_config()
        merged.update(config.extra)
        merged["output"] = str(config.output)
        if config.key is not None:
            merged["key"] = str(config.key)
        merged["base-path"] = str(config.base_path)
        return merged

    @staticmethod
    def check_output_target(output: Path, allow_overwrite: bool) -> None:
        directory = output.parent
        if not directory.is_dir() or not os.access(directory, os.W_OK):
            raise PreconditionError("Not writable", output)
        if output.exists() and not allow_overwrite:
            raise PreconditionError("File exists and overwrite was not confirmed", output)

    def build(self, config: BuildConfig) -> Path:
        merged = self.merged_config(config)
        tool = self.process.resolve(self.settings.packaging_tool)

        fd, tmp_name = tempfile.mkstemp(prefix="box_json", suffix=".json")
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(merged, fh)
            log.info("Building package using %s", self.settings.packaging_tool)
            self.process.run(
                [tool, "build", "--no-interaction", f"--configuration={tmp_path}"],
                cwd=self.settings.source_root,
            )
        finally:
            tmp_path.unlink(missing_ok=True)

        if not config.output.is_file():
            raise PostconditionError("Build failed: file not found", config.output)
        log.info("The package was built successfully")
        return config.output
