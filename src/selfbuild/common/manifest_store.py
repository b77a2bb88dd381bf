from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from selfbuild.common.errors import ManifestError
from selfbuild.common.types import ReleaseEntry
from selfbuild.common.versioning import latest_index, parse_version


log = logging.getLogger(__name__)


@dataclass
class ManifestDocument:
    # Raw entry objects, kept as loaded so unknown fields survive a rewrite.
    entries: list[dict[str, Any]] = field(default_factory=list)

    def versions(self) -> list[str]:
        return [str(entry.get("version", "")) for entry in self.entries]

    def latest_index(self) -> int | None:
        return latest_index(self.versions())

    def entry(self, index: int) -> ReleaseEntry:
        return ReleaseEntry.from_dict(self.entries[index])

    def has_version(self, version: str) -> bool:
        target = parse_version(version)
        return any(parse_version(v) == target for v in self.versions())


def _validate_entries(raw: Any, path: Path) -> list[dict[str, Any]]:
    if not isinstance(raw, list):
        raise ManifestError("Manifest must be a JSON array of release entries", path)
    seen: set[tuple] = set()
    for idx, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ManifestError(f"Manifest entry at index {idx} is not an object", path)
        if "version" not in item:
            raise ManifestError(f"Manifest entry at index {idx} has no version", path)
        # Build metadata is ignored, matching version precedence.
        key = parse_version(str(item["version"])).to_tuple()[:4]
        if key in seen:
            raise ManifestError(f"Manifest has duplicate version {item['version']!r}", path)
        seen.add(key)
    return raw


def load_manifest(path: Path) -> ManifestDocument:
    try:
        # Accept an optional UTF-8 BOM left behind by editors.
        with path.open("r", encoding="utf-8-sig") as fh:
            raw = json.load(fh)
    except FileNotFoundError as exc:
        raise ManifestError("Manifest file not found", path) from exc
    except OSError as exc:
        raise ManifestError("Manifest file not readable", path) from exc
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ManifestError(f"Failed to decode manifest file ({exc})", path) from exc
    return ManifestDocument(entries=_validate_entries(raw, path))


def ensure_writable(path: Path) -> None:
    if not os.access(path, os.W_OK):
        raise ManifestError("Manifest file not writable", path)
    if not os.access(path.parent, os.W_OK):
        raise ManifestError("Manifest directory not writable", path.parent)


def dump_manifest(document: ManifestDocument) -> str:
    # json never escapes "/", so URLs stay readable in diffs.
    return json.dumps(document.entries, indent=4, ensure_ascii=False) + "\n"


def save_manifest(path: Path, document: ManifestDocument) -> None:
    payload = dump_manifest(document)
    tmp = path.with_name(path.name + ".tmp")
    try:
        with tmp.open("w", encoding="utf-8") as fh:
            fh.write(payload)
            fh.flush()
            os.fsync(fh.fileno())
        tmp.replace(path)
    except OSError as exc:
        if tmp.is_file():
            tmp.unlink()
        raise ManifestError(f"Failed to update manifest file ({exc})", path) from exc
    log.info("Updated manifest file: %s", path)
