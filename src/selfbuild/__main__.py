from __future__ import annotations

from selfbuild.builder.cli import main


if __name__ == "__main__":
    raise SystemExit(main())
