#!/usr/bin/env python3
# File: cli/expressions.py
"""
snaplog - PassThru log expression tool

Turns J2534 shim logs into expression files (one table block per API call)
and converts expression files back into plain log text.

Usage:
  python -m cli.expressions generate session.txt
  python -m cli.expressions generate logs/*.txt --workers 4 --out out/
  python -m cli.expressions generate session.txt --show     # also print to stdout
  python -m cli.expressions import expressions/session.ptExp
  python -m cli.expressions patterns                        # list active regex patterns
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from snaplog.errors import PatternLoadError
from snaplog.generator import generate_expression_batch, render_expressions
from snaplog.logger import get_logger
from snaplog.regex_models import default_registry
from snaplog.splitter import import_expression_set

log = get_logger("cli")


# ------------------------------- actions -------------------------------

def action_generate(files: List[str], workers: Optional[int], out: Optional[str], show: bool) -> int:
    results = generate_expression_batch(files, workers=workers, output_dir=out, logger=log)

    failed = 0
    for path, result in results.items():
        if not result.ok:
            failed += 1
            print(f"Error: {path}: {result.error}", file=sys.stderr)
            continue
        print(f"{path}: {len(result.expressions)} expression(s) -> {result.expression_file}")
        if show:
            print(render_expressions(result.expressions))
            print()

    return 1 if failed else 0


def action_import(file: str, out: Optional[str]) -> int:
    try:
        output_path = import_expression_set(file, output_dir=out, logger=log)
    except OSError as e:
        print(f"Error: import failed: {e}", file=sys.stderr)
        return 1
    print(f"{file} -> {output_path}")
    return 0


def action_patterns() -> int:
    try:
        registry = default_registry()
    except PatternLoadError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    width = max(len(model.name) for model in registry)
    for model in registry:
        print(f"{model.name.ljust(width)}  {model.pattern}")
    return 0


# ------------------------------- CLI -------------------------------

def main(argv: Optional[list[str]] = None) -> int:
    p = argparse.ArgumentParser(
        description="snaplog expression tool (PassThru shim logs)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    p_gen = sub.add_parser("generate", help="Build .ptExp expression files from log files")
    p_gen.add_argument("files", nargs="+", help="Shim log file(s)")
    p_gen.add_argument("--workers", type=int, default=None, help="Parallel files (default: SNAPLOG_WORKERS or CPU count)")
    p_gen.add_argument("--out", default=None, help="Output directory (default: SNAPLOG_EXPRESSIONS_DIR)")
    p_gen.add_argument("--show", action="store_true", help="Print the expressions as well")

    p_imp = sub.add_parser("import", help="Convert an expression file back into log text")
    p_imp.add_argument("file", help="Expression file (.ptExp)")
    p_imp.add_argument("--out", default=None, help="Output directory (default: SNAPLOG_CONVERSIONS_DIR)")

    sub.add_parser("patterns", help="List the active regex patterns")

    args = p.parse_args(argv)

    if args.cmd == "generate":
        return action_generate(args.files, args.workers, args.out, args.show)
    if args.cmd == "import":
        return action_import(args.file, args.out)
    if args.cmd == "patterns":
        return action_patterns()

    return 2


if __name__ == "__main__":
    sys.exit(main())
