#!/usr/bin/env python
"""Fix LV2 parameter indices in an Ardour session.

Usage
-----
    # Repair in place; the original is kept as session.ardour.orig
    python scripts/fix_lv2_index.py session.ardour

    # Write the repaired session elsewhere (no backup)
    python scripts/fix_lv2_index.py session.ardour -o fixed.ardour

    # Filter: stdin → stdout
    python scripts/fix_lv2_index.py - < session.ardour > fixed.ardour

    # Report only, using a pinned YAML catalog instead of installed plugins
    python scripts/fix_lv2_index.py session.ardour --dry-run --catalog plugins.yaml

Exit codes
----------
    0  — success, no changes needed
    1  — fatal error (unparseable session, backup or write failure)
    2  — usage error
    3  — success, remaps found (written, or only reported with --dry-run)
    4  — success, but some references could not be resolved

Exit codes describe what was found, not what was written: a dry run
exits 3 wherever a real run would patch.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

# Add project root to sys.path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.ardour.errors import RemapError  # noqa: E402
from core.ardour.report import RemapSummary  # noqa: E402
from ingestion.patch_writer import write_atomic  # noqa: E402
from ingestion.remap_engine import RemapEngine  # noqa: E402
from ingestion.settings import load_config, split_search_path  # noqa: E402

logger = logging.getLogger("fix_lv2_index")

EXIT_NO_CHANGE = 0
EXIT_FATAL = 1
EXIT_PATCHED = 3
EXIT_UNRESOLVED = 4

STDIO = "-"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="fix-ardour-lv2-index",
        description=(
            "Fixes LV2 parameter indices in an .ardour session file and saves "
            "a backup of the original session in <session>.orig."
        ),
    )
    p.add_argument("session", help="Session file, or '-' to read from stdin")
    p.add_argument(
        "-o",
        "--output",
        metavar="FILE",
        default=None,
        help="Write to FILE instead of modifying the session in place ('-' for stdout)",
    )
    p.add_argument(
        "--catalog",
        metavar="YAML",
        default=None,
        help="Use a YAML parameter catalog instead of the installed LV2 plugins",
    )
    p.add_argument(
        "--lv2-path",
        metavar="PATHS",
        default=None,
        help="LV2 search path (overrides LV2_PATH)",
    )
    p.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would change without writing anything",
    )
    p.add_argument("--json", action="store_true", help="Print the summary as JSON")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return p.parse_args(argv)


def exit_code_for(summary: RemapSummary) -> int:
    """Unresolved wins over remaps found; the same under --dry-run."""
    if summary.has_unresolved:
        return EXIT_UNRESOLVED
    if summary.has_remaps:
        return EXIT_PATCHED
    return EXIT_NO_CHANGE


def _print_summary(summary: RemapSummary, *, as_json: bool, stream) -> None:
    if as_json:
        print(json.dumps(summary.to_dict(), indent=2), file=stream)
    else:
        print(summary.render(), file=stream)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(name)s: %(message)s",
    )

    try:
        config = load_config(
            lv2_path=split_search_path(args.lv2_path) if args.lv2_path else None,
            catalog_path=args.catalog,
            dry_run=args.dry_run or None,
        )
    except ValueError as exc:
        logger.error("invalid configuration: %s", exc)
        return EXIT_FATAL

    from_stdin = args.session == STDIO
    to_stdout = args.output == STDIO or (from_stdin and args.output is None)
    report_stream = sys.stderr if to_stdout else sys.stdout

    try:
        engine = RemapEngine(config)
        if from_stdin or to_stdout:
            data = sys.stdin.buffer.read() if from_stdin else Path(args.session).read_bytes()
            patched, summary = engine.run_bytes(data)
            if not config.dry_run:
                if to_stdout:
                    sys.stdout.buffer.write(patched)
                    sys.stdout.buffer.flush()
                else:
                    write_atomic(Path(args.output), patched)
        else:
            output = Path(args.output) if args.output else None
            result = engine.run(Path(args.session), output_path=output)
            summary = result.summary
            if result.backup_path is not None:
                logger.info("original saved as %s", result.backup_path)
    except (RemapError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_FATAL

    _print_summary(summary, as_json=args.json, stream=report_stream)
    return exit_code_for(summary)


if __name__ == "__main__":
    sys.exit(main())
