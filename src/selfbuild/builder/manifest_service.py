from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from selfbuild.common.errors import ManifestError
from selfbuild.common.manifest_store import ManifestDocument
from selfbuild.common.types import ReleaseData, UpgradeNote
from selfbuild.common.versioning import compare_versions


log = logging.getLogger(__name__)


class UpdatePolicy(str, enum.Enum):
    UPDATE_LATEST = "update-latest"
    ADD = "add"

    @classmethod
    def parse(cls, value: "str | UpdatePolicy") -> "UpdatePolicy":
        try:
            return cls(value)
        except ValueError:
            raise ManifestError("Unrecognised manifest update mode", value) from None


@dataclass(frozen=True)
class UpdatePlan:
    policy: UpdatePolicy
    latest_index: int | None
    old_version: str | None


class ManifestService:
    def plan(self, document: ManifestDocument, policy: "str | UpdatePolicy", version: str) -> UpdatePlan:
        policy = UpdatePolicy.parse(policy)
        latest = document.latest_index()
        old_version = document.entry(latest).version if latest is not None else None

        if policy is UpdatePolicy.UPDATE_LATEST:
            if latest is None:
                raise ManifestError("Cannot update the latest entry of an empty manifest")
            if compare_versions(version, old_version) < 0:
                raise ManifestError(f"Refusing to replace latest version {old_version} with an older version", version)
        elif document.has_version(version):
            raise ManifestError("Manifest already has an entry for version", version)

        return UpdatePlan(policy=policy, latest_index=latest, old_version=old_version)

    def update(self, document: ManifestDocument, policy: "str | UpdatePolicy", release: ReleaseData) -> int:
        """Apply ``release`` to ``document`` and return the index of the written entry."""

        plan = self.plan(document, policy, release.version)
        latest = plan.latest_index
        if plan.policy is UpdatePolicy.ADD:
            document.entries.insert(0, {})
            target = 0
            if latest is not None:
                latest += 1
        else:
            target = latest

        entry = document.entries[target]
        old_version = plan.old_version
        if latest is not None:
            latest_entry = document.entry(latest)
            log.info("Found latest version: v%s (%d upgrade notes)", old_version, len(latest_entry.updating))
            if latest_entry.url:
                entry["url"] = latest_entry.url.replace(old_version, release.version)

        entry["version"] = release.version
        entry["sha1"] = release.fingerprint.sha1
        entry["sha256"] = release.fingerprint.sha256
        entry["name"] = release.name
        runtime = entry.get("runtime")
        if not isinstance(runtime, dict):
            runtime = {}
        runtime["min"] = release.runtime_min
        entry["runtime"] = runtime

        if release.changelog and old_version and compare_versions(release.version, old_version) > 0:
            note = UpgradeNote(notes=release.changelog, show_from=old_version, hide_from=release.version)
            updating = entry.get("updating")
            if not isinstance(updating, list):
                updating = []
            updating.append(note.to_dict())
            entry["updating"] = updating
            log.info("Changes:\n%s", release.changelog)

        return target
