from __future__ import annotations

import hashlib
from pathlib import Path

from selfbuild.common.types import Fingerprint


def fingerprint_file(path: Path, chunk_size: int = 1024 * 1024) -> Fingerprint:
    # SHA-1 is kept for older installed clients; SHA-256 is the one to verify.
    sha1 = hashlib.sha1()
    sha256 = hashlib.sha256()
    size = 0
    with path.open("rb") as fh:
        while True:
            data = fh.read(chunk_size)
            if not data:
                break
            sha1.update(data)
            sha256.update(data)
            size += len(data)
    return Fingerprint(sha1=sha1.hexdigest(), sha256=sha256.hexdigest(), size=size)


def format_bytes(value: int | None) -> str:
    if value is None:
        return "?"
    units = ["B", "KB", "MB", "GB", "TB"]
    amount = float(value)
    idx = 0
    while amount >= 1024.0 and idx < len(units) - 1:
        amount /= 1024.0
        idx += 1
    return f"{amount:.1f}{units[idx]}"
