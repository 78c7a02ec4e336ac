"""Command-line entry point: ``saucer-build``."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from saucer.config import get_settings

from .coordinator import generate_runtime, is_up_to_date, write_runtime
from .errors import GenerationError
from .models import GenerationRequest

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="saucer-build",
        description="Generate the runtime package for the project in --manifest-dir.",
    )
    parser.add_argument("--manifest-dir", type=Path, help="directory holding pyproject.toml")
    parser.add_argument("--output", type=Path, help="output directory (defaults next to the host file)")
    parser.add_argument("--namespace", help="name of the generated package")
    parser.add_argument(
        "--check",
        action="store_true",
        help="exit with status 1 when the generated package is missing or stale; write nothing",
    )
    parser.add_argument("--log-level", help="logging level, e.g. DEBUG")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv(override=False)
    settings = get_settings()
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=(args.log_level or settings.log_level).upper(),
        format='%(asctime)s - %(levelname)s - %(message)s',
    )

    request = GenerationRequest(
        manifest_dir=(args.manifest_dir or settings.manifest_dir).resolve(),
        output_dir=args.output or settings.output_dir,
        namespace=args.namespace or settings.namespace,
    )
    try:
        result = generate_runtime(request)
        if args.check:
            if is_up_to_date(result):
                return 0
            print(f"stale: {result.output_dir}", file=sys.stderr)
            return 1
        changed = write_runtime(result)
    except GenerationError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    state = "written" if changed else "unchanged"
    print(f"{result.output_dir} ({len(result.files)} files, {state})")
    for path in result.watched_paths:
        logger.debug("watching %s", path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
