from selfbuild.common.config import BuildSettings
from selfbuild.common.manifest_store import ManifestDocument, load_manifest, save_manifest

__all__ = [
    "BuildSettings",
    "ManifestDocument",
    "load_manifest",
    "save_manifest",
]
