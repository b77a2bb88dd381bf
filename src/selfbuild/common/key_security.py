from __future__ import annotations

from pathlib import Path

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization

from selfbuild.common.errors import PreconditionError


def validate_signing_key(path: Path) -> Path:
    """Check that ``path`` holds a PEM private key and return it resolved.

    The key is only handed to the packaging tool; encrypted keys are accepted
    without being decrypted here.
    """

    if not path.is_file():
        raise PreconditionError("File not found", path)
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise PreconditionError("Signing key not readable", path) from exc

    if not data.lstrip().startswith(b"-----BEGIN"):
        raise PreconditionError("Signing key must be a PEM private key", path)

    try:
        serialization.load_pem_private_key(data, password=None)
    except TypeError:
        # Passphrase protected; the packaging tool will prompt or read it from its config.
        pass
    except (ValueError, UnsupportedAlgorithm) as exc:
        raise PreconditionError("Signing key could not be loaded as a PEM private key", path) from exc
    return path.resolve()
