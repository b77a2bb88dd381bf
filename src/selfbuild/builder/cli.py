from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from selfbuild import __version__ as SELFBUILD_VERSION
from selfbuild.builder.manifest_service import UpdatePolicy
from selfbuild.builder.pipeline import ReleasePipeline, ReleaseRequest
from selfbuild.common.config import BuildSettings
from selfbuild.common.errors import SelfBuildError
from selfbuild.common.logging_utils import configure_logging


log = logging.getLogger(__name__)


def _build_option(value: str) -> tuple[str, Any]:
    key, sep, raw = value.partition("=")
    key = key.strip()
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"Expected KEY=VALUE, got {value!r}")
    try:
        parsed: Any = json.loads(raw)
    except json.JSONDecodeError:
        parsed = raw
    return key, parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Build a new package of the CLI and update the release manifest")
    parser.add_argument("--output", type=Path, help="The output filename (default: <executable>.phar).")
    parser.add_argument("--key", type=Path, help="The path to a private key used to sign the package.")
    parser.add_argument(
        "--no-dependency-rebuild",
        action="store_true",
        help="Skip rebuilding the production dependencies.",
    )
    parser.add_argument("--manifest", type=Path, help="The manifest file to update (default: dist/manifest.json).")
    parser.add_argument(
        "--manifest-mode",
        default=UpdatePolicy.UPDATE_LATEST.value,
        help="How to update the manifest file: update-latest or add.",
    )
    parser.add_argument("--app-version", help="Version being released (default: VERSION file).")
    parser.add_argument("--source-root", type=Path, help="Root of the source tree to package.")
    parser.add_argument(
        "--build-option",
        action="append",
        type=_build_option,
        default=[],
        metavar="KEY=VALUE",
        help="Extra packaging configuration value (repeatable).",
    )
    parser.add_argument("-y", "--yes", action="store_true", help="Overwrite an existing output file.")
    parser.add_argument("--log-level", default="INFO", help="Log level.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {SELFBUILD_VERSION}")
    return parser


def confirm_overwrite(path: Path) -> bool:
    if not sys.stdin.isatty():
        return False
    # stdout carries only the artifact path.
    sys.stderr.write(f"File exists: {path}. Overwrite? [y/N] ")
    sys.stderr.flush()
    answer = sys.stdin.readline()
    return answer.strip().lower() in {"y", "yes"}


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    cwd = Path.cwd()

    try:
        settings = BuildSettings.from_env(source_root=args.source_root, app_version=args.app_version)
    except SelfBuildError as exc:
        configure_logging(level=args.log_level)
        log.error("%s", exc)
        return 1
    configure_logging(settings.log_dir, level=args.log_level)

    try:
        policy = UpdatePolicy.parse(args.manifest_mode)
        output = (cwd / args.output).resolve() if args.output else settings.default_output_path(cwd)
        manifest_path = (cwd / args.manifest).resolve() if args.manifest else settings.default_manifest_path
        request = ReleaseRequest(
            output=output,
            manifest_path=manifest_path,
            policy=policy,
            key=(cwd / args.key) if args.key else None,
            skip_dependencies=args.no_dependency_rebuild,
            allow_overwrite=args.yes,
            extra=dict(args.build_option),
            confirm_overwrite=confirm_overwrite,
        )
        result = ReleasePipeline(settings).run(request)
    except SelfBuildError as exc:
        log.error("%s failure: %s", exc.kind.capitalize(), exc)
        return 1

    print(result.artifact)
    log.info("Release %s recorded in %s", result.version, result.manifest_path)
    return 0
