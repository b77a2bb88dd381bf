from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Sequence

from selfbuild.common.errors import PreconditionError, SubprocessError


log = logging.getLogger(__name__)


class ProcessService:
    def __init__(self, cwd: Path):
        self.cwd = cwd

    def resolve(self, name: str) -> str:
        resolved = shutil.which(name)
        if resolved is None:
            raise PreconditionError("Command not found", name)
        return resolved

    def run(self, cmd: Sequence[str], capture: bool = False, cwd: Path | None = None) -> str:
        """Run ``cmd`` to completion and return captured stdout.

        Without ``capture`` the child's stdout and stderr go straight to ours.
        """

        cmd = [str(part) for part in cmd]
        log.debug("Running command: %s", cmd)
        try:
            completed = subprocess.run(
                cmd,
                cwd=str(cwd or self.cwd),
                stdout=subprocess.PIPE if capture else None,
                stderr=subprocess.PIPE if capture else None,
                encoding="utf-8",
                errors="replace",
                check=False,
                shell=False,
            )
        except OSError as exc:
            raise SubprocessError(f"Failed to start command ({exc})", cmd[0]) from exc

        if completed.returncode != 0:
            if capture and completed.stderr:
                log.debug("Command stderr: %s", completed.stderr.strip())
            raise SubprocessError(
                f"Command failed with exit code {completed.returncode}",
                " ".join(cmd),
                returncode=completed.returncode,
            )
        return completed.stdout if capture else ""
