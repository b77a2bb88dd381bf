from __future__ import annotations

from pathlib import Path


class SelfBuildError(Exception):
    kind = "error"

    def __init__(self, message: str, path: Path | str | None = None):
        super().__init__(message)
        self.message = message
        self.path = path

    def __str__(self) -> str:
        if self.path is None:
            return self.message
        return f"{self.message}: {self.path}"


class PreconditionError(SelfBuildError):
    kind = "precondition"


class SubprocessError(SelfBuildError):
    kind = "subprocess"

    def __init__(self, message: str, path: Path | str | None = None, returncode: int | None = None):
        super().__init__(message, path)
        self.returncode = returncode


class PostconditionError(SelfBuildError):
    kind = "postcondition"


class ChangelogError(SelfBuildError):
    kind = "changelog"


class ManifestError(SelfBuildError):
    kind = "manifest"
