"""Scan a Ruby source tree and summarize the documentation model it declares."""

import argparse
import logging
from pathlib import Path

from rbdoc.load_config import load_config
from rbdoc.reporting import ScanReport, config_hash
from rbdoc.scan_files import discover_files, scan_files

logger = logging.getLogger("rbdoc")


def run_scan(args: argparse.Namespace) -> int:
    """Execute the scan and print the summary."""
    config = load_config(args.config)
    if args.workers is not None:
        config["scan"]["workers"] = args.workers

    scan = config["scan"]
    if not discover_files(args.source_dir, scan["file_patterns"], scan["exclude"]):
        msg = f"No Ruby files found under: {args.source_dir}"
        raise SystemExit(msg)

    store = scan_files(args.source_dir, config)
    for warning in store.warnings:
        logger.warning("%s", warning)

    report = ScanReport(config_hash(config), config["documentation"]["visibility"])
    report.add_store(store)
    for entry in report.namespaces:
        print(
            f"{entry['kind']:<9} {entry['name']}"
            f"  ({entry['methods']} methods, {entry['attributes']} attributes,"
            f" {entry['constants']} constants)"
        )
    print(
        f"Scanned {report.file_count} files: {len(report.namespaces)} documented "
        f"namespaces, {len(report.warnings)} warnings"
    )

    if args.report:
        report.generate_report(args.report)
        print(f"Wrote report to: {args.report}")
    return 0


def main() -> int:
    """Run the scan from the command line."""
    ap = argparse.ArgumentParser(
        description="Extract the documentation model of a Ruby source tree.",
    )
    ap.add_argument(
        "source_dir",
        type=Path,
        help="Directory (or single file) containing Ruby sources",
    )
    ap.add_argument(
        "--config",
        help="Path to configuration file",
    )
    ap.add_argument(
        "--workers",
        type=int,
        help="Number of files scanned in parallel (overrides scan.workers)",
    )
    ap.add_argument(
        "--report",
        help="Write a JSON report of namespaces and warnings to this path",
    )
    ap.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log scanner debug output",
    )
    args = ap.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return run_scan(args)


if __name__ == "__main__":
    raise SystemExit(main())
