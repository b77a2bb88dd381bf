"""Semantic version ordering for manifest entries."""

from __future__ import annotations

from typing import Sequence

import semver

from selfbuild.common.errors import ManifestError


def parse_version(value: str) -> semver.Version:
    text = str(value or "").strip()
    if text[:1] in {"v", "V"}:
        text = text[1:]
    try:
        return semver.Version.parse(text, optional_minor_and_patch=True)
    except (TypeError, ValueError) as exc:
        raise ManifestError("Invalid version string", value) from exc


def compare_versions(left: str, right: str) -> int:
    """Return ``1`` if ``left`` is newer than ``right``, ``-1`` if older, ``0`` if equal.

    Build metadata (``+...``) does not take part in the ordering.
    """

    return parse_version(left).compare(parse_version(right))


def latest_index(versions: Sequence[str]) -> int | None:
    """Index of the greatest version, or ``None`` for an empty sequence.

    Ties keep the earliest position.
    """

    best: int | None = None
    best_version: semver.Version | None = None
    for idx, raw in enumerate(versions):
        parsed = parse_version(raw)
        if best_version is None or parsed > best_version:
            best = idx
            best_version = parsed
    return best
