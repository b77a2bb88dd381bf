from __future__ import annotations

import logging
import shutil

from selfbuild.builder.process_service import ProcessService
from selfbuild.common.config import BuildSettings
from selfbuild.common.errors import PreconditionError


log = logging.getLogger(__name__)

INSTALL_FLAGS = (
    "--no-dev",
    "--classmap-authoritative",
    "--no-interaction",
    "--no-progress",
)


class DependencyService:
    def __init__(self, settings: BuildSettings, process: ProcessService):
        self.settings = settings
        self.process = process

    def check_source_tree(self) -> None:
        dependency_dir = self.settings.dependency_dir
        if not dependency_dir.is_dir():
            raise PreconditionError("Directory not found (cannot build from a global install)", dependency_dir)

    def install_command(self) -> list[str]:
        return [self.process.resolve(self.settings.dependency_tool), "install", *INSTALL_FLAGS]

    def prepare(self) -> None:
        log.info("Ensuring correct %s dependencies", self.settings.dependency_tool)
        cmd = self.install_command()

        # Drop locally modified or dev-only packages before reinstalling.
        dependency_dir = self.settings.dependency_dir
        if dependency_dir.exists():
            log.info("Removing %s", dependency_dir)
            shutil.rmtree(dependency_dir)

        self.process.run(cmd, cwd=self.settings.source_root)
