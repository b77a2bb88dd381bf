from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class Fingerprint:
    sha1: str
    sha256: str
    size: int


@dataclass(frozen=True)
class UpgradeNote:
    notes: str
    show_from: str | None = None
    hide_from: str | None = None

    def to_dict(self) -> dict[str, str]:
        data = {"notes": self.notes}
        if self.show_from is not None:
            data["show_from"] = self.show_from
        if self.hide_from is not None:
            data["hide_from"] = self.hide_from
        return data

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "UpgradeNote":
        show_from = raw.get("show_from")
        hide_from = raw.get("hide_from")
        return cls(
            notes=str(raw.get("notes", "")),
            show_from=str(show_from) if show_from is not None else None,
            hide_from=str(hide_from) if hide_from is not None else None,
        )


@dataclass(frozen=True)
class ReleaseEntry:
    version: str
    name: str = ""
    sha1: str = ""
    sha256: str = ""
    url: str = ""
    runtime_min: str = ""
    updating: tuple[UpgradeNote, ...] = ()

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "ReleaseEntry":
        runtime = raw.get("runtime") or {}
        updating = raw.get("updating")
        if not isinstance(updating, list):
            updating = []
        return cls(
            version=str(raw["version"]).strip(),
            name=str(raw.get("name", "")),
            sha1=str(raw.get("sha1", "")),
            sha256=str(raw.get("sha256", "")),
            url=str(raw.get("url", "")),
            runtime_min=str(runtime.get("min", "")) if isinstance(runtime, dict) else "",
            updating=tuple(UpgradeNote.from_dict(n) for n in updating if isinstance(n, dict)),
        )


@dataclass(frozen=True)
class BuildConfig:
    output: Path
    base_path: Path
    key: Path | None = None
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ReleaseData:
    version: str
    fingerprint: Fingerprint
    name: str
    runtime_min: str
    changelog: str = ""
