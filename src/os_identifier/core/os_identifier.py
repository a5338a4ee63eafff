#!/usr/bin/env python3
"""
OS Identifier command line

Resolves one or more operating system labels and prints one canonical name
per edition.

Usage:
    python run_tools.py --label 11-24h2-e
    python run_tools.py --label "Microsoft Windows 10 Pro 17763" --details
    python run_tools.py --file inventory_labels.txt --json
"""

import argparse
import sys
from pathlib import Path
from typing import List

import orjson

from .config_loader import TOOLNAME, VERSION
from .resolution_errors import OSIdentifierError
from .version_dispatcher import ResolutionOutcome, VersionDispatcher
from ..logging.workflow_logger import get_logger

logger = get_logger()


def read_label_file(file_path: str) -> List[str]:
    """One label per line; blank lines and ``#`` comments are skipped."""
    lines = Path(file_path).read_text(encoding='utf-8').splitlines()
    return [line.strip() for line in lines if line.strip() and not line.lstrip().startswith('#')]


def outcome_to_dict(value: str, outcome: ResolutionOutcome) -> dict:
    if outcome.resolved:
        return {'input': value, 'resolved': True, **outcome.record.to_dict()}
    return {
        'input': value,
        'resolved': False,
        'error': str(outcome.error),
        'error_kind': outcome.error.kind.value,
        'unknown_builds': sorted({attempt.value for attempt in outcome.error.build_failures()}),
    }


def print_outcome(value: str, outcome: ResolutionOutcome, details: bool = False):
    if not outcome.resolved:
        print(f"{value}: {outcome.error}")
        return
    record = outcome.record
    if details:
        print(f"{value}:")
        print(f"  family:          {record.family.value}")
        print(f"  product:         {record.vendor} {record.product}")
        print(f"  release:         {record.release or '-'}")
        print(f"  service channel: {record.service_channel.label}")
    for line in record.to_strings():
        print(f"  {line}" if details else line)


def main(argv=None):
    """Resolve labels given on the command line or in a file."""
    parser = argparse.ArgumentParser(
        description=f"{TOOLNAME} {VERSION} - resolve operating system labels to canonical names",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --label 11-24h2-e
  %(prog)s --label 10-1607-e-lts --label "Windows Server 2019 Standard"
  %(prog)s --file labels.txt --json
        """
    )
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--label", action="append", help="Label to resolve (repeatable)")
    group.add_argument("--file", help="Text file with one label per line")
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    parser.add_argument("--details", action="store_true", help="Print the resolved fields for each label")
    parser.add_argument("--verbose", action="store_true", help="Log every recognizer decision")
    args = parser.parse_args(argv)

    if args.verbose:
        logger.set_level("DEBUG")

    try:
        labels = args.label if args.label else read_label_file(args.file)
        dispatcher = VersionDispatcher()
    except (OSError, OSIdentifierError) as e:
        logger.error(f"Unable to start resolution: {e}", group="initialization")
        return 2

    results = []
    unresolved = 0
    for value in labels:
        outcome = dispatcher.try_resolve(value)
        if not outcome.resolved:
            unresolved += 1
            logger.warning(str(outcome.error), group="dispatch")
        if args.json:
            results.append(outcome_to_dict(value, outcome))
        else:
            print_outcome(value, outcome, details=args.details)

    if args.json:
        sys.stdout.write(orjson.dumps(results, option=orjson.OPT_INDENT_2).decode('utf-8') + "\n")

    if len(labels) > 1:
        logger.data_summary("Resolution", group="dispatch",
                            labels=len(labels), resolved=len(labels) - unresolved, unresolved=unresolved)
    return 1 if unresolved else 0


if __name__ == "__main__":
    sys.exit(main())
