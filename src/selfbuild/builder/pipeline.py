from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from selfbuild.builder.build_service import BuildService
from selfbuild.builder.changelog_service import ChangelogService
from selfbuild.builder.dependency_service import DependencyService
from selfbuild.builder.manifest_service import ManifestService, UpdatePlan, UpdatePolicy
from selfbuild.builder.process_service import ProcessService
from selfbuild.common.config import BuildSettings, running_from_package
from selfbuild.common.errors import PreconditionError
from selfbuild.common.hashing import fingerprint_file, format_bytes
from selfbuild.common.manifest_store import ManifestDocument, ensure_writable, load_manifest, save_manifest
from selfbuild.common.types import BuildConfig, Fingerprint, ReleaseData
from selfbuild.common.versioning import compare_versions


log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReleaseRequest:
    output: Path
    manifest_path: Path
    policy: str | UpdatePolicy = UpdatePolicy.UPDATE_LATEST
    key: Path | None = None
    skip_dependencies: bool = False
    allow_overwrite: bool = False
    extra: dict[str, Any] = field(default_factory=dict)
    # Asked only once the manifest has been loaded and planned.
    confirm_overwrite: Callable[[Path], bool] | None = None

    def overwrite_allowed(self) -> bool:
        if self.allow_overwrite:
            return True
        if self.confirm_overwrite is None or not self.output.exists():
            return False
        return self.confirm_overwrite(self.output)


@dataclass(frozen=True)
class ReleaseResult:
    artifact: Path
    version: str
    fingerprint: Fingerprint
    manifest_path: Path
    entry_index: int
    changelog: str


class ReleasePipeline:
    def __init__(self, settings: BuildSettings, process: ProcessService | None = None):
        self.settings = settings
        self.process = process or ProcessService(settings.source_root)
        self.dependencies = DependencyService(settings, self.process)
        self.builder = BuildService(settings, self.process)
        self.changelog = ChangelogService(settings, self.process)
        self.manifest = ManifestService()

    def run(self, request: ReleaseRequest) -> ReleaseResult:
        version = self.settings.app_version
        document, plan = self.load_and_plan(request)
        config = self.check_preconditions(request)

        self.prepare_dependencies(request)
        artifact = self.builder.build(config)
        fingerprint = self.fingerprint(artifact)
        changelog = self.extract_changelog(plan)

        release = ReleaseData(
            version=version,
            fingerprint=fingerprint,
            name=artifact.name,
            runtime_min=self.settings.runtime_min,
            changelog=changelog,
        )
        log.info("Updating manifest file: %s", request.manifest_path)
        index = self.manifest.update(document, plan.policy, release)
        save_manifest(request.manifest_path, document)
        return ReleaseResult(
            artifact=artifact,
            version=version,
            fingerprint=fingerprint,
            manifest_path=request.manifest_path,
            entry_index=index,
            changelog=changelog,
        )

    def load_and_plan(self, request: ReleaseRequest) -> tuple[ManifestDocument, UpdatePlan]:
        policy = UpdatePolicy.parse(request.policy)
        document = load_manifest(request.manifest_path)
        ensure_writable(request.manifest_path)
        plan = self.manifest.plan(document, policy, self.settings.app_version)
        return document, plan

    def check_preconditions(self, request: ReleaseRequest) -> BuildConfig:
        if running_from_package():
            raise PreconditionError("Cannot build a package from inside a packaged build", Path(__file__))
        self.dependencies.check_source_tree()
        self.process.resolve(self.settings.packaging_tool)
        if not request.skip_dependencies:
            self.process.resolve(self.settings.dependency_tool)
        self.builder.check_output_target(request.output, request.overwrite_allowed())
        config = self.builder.resolve_config(request.output, key=request.key, extra=request.extra)
        self.builder.load_base_config()
        return config

    def prepare_dependencies(self, request: ReleaseRequest) -> None:
        if request.skip_dependencies:
            log.info("Skipping %s dependency rebuild", self.settings.dependency_tool)
            return
        self.dependencies.prepare()

    def fingerprint(self, artifact: Path) -> Fingerprint:
        fingerprint = fingerprint_file(artifact)
        log.info("Size: %s", format_bytes(fingerprint.size))
        log.info("SHA-1: %s", fingerprint.sha1)
        log.info("SHA-256: %s", fingerprint.sha256)
        log.info("Version: %s", self.settings.app_version)
        return fingerprint

    def extract_changelog(self, plan: UpdatePlan) -> str:
        if not plan.old_version or compare_versions(self.settings.app_version, plan.old_version) <= 0:
            return ""
        return self.changelog.extract(plan.old_version)
