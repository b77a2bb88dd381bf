from __future__ import annotations

import logging

from selfbuild.builder.process_service import ProcessService
from selfbuild.common.config import BuildSettings
from selfbuild.common.errors import ChangelogError, SelfBuildError


log = logging.getLogger(__name__)

EXCLUDE_PATTERN = r"(Release v|\[skip changelog\])"


class ChangelogService:
    def __init__(self, settings: BuildSettings, process: ProcessService):
        self.settings = settings
        self.process = process

    def command(self, from_version: str, to_ref: str) -> list[str]:
        return [
            "git",
            "log",
            "--pretty=format:* %s",
            "--no-merges",
            "--invert-grep",
            f"--grep={EXCLUDE_PATTERN}",
            "--extended-regexp",
            "--regexp-ignore-case",
            f"{self.settings.version_tag(from_version)}..{to_ref}",
        ]

    def query(self, from_version: str, to_ref: str) -> str:
        try:
            output = self.process.run(self.command(from_version, to_ref), capture=True, cwd=self.settings.source_root)
        except SelfBuildError as exc:
            raise ChangelogError(f"Changelog query failed ({exc.message})", exc.path) from exc
        return output.strip()

    def extract(self, from_version: str, to_ref: str | None = None) -> str:
        to_ref = to_ref or self.settings.changelog_ref
        try:
            return self.query(from_version, to_ref)
        except ChangelogError as exc:
            log.warning("Skipping changelog: %s", exc)
            return ""
