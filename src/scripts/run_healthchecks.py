#!/usr/bin/env python3
"""
Genome Database Health Checks - Command Line Runner
Runs health checks against a primary set of databases, optionally comparing
them with a secondary (reference) set on another server.

Usage:
    python -m scripts.run_healthchecks -d 'ensembl_compara_.+' \\
        -d2 '.+_core_.+' -d2 '.+_compara_.+' CheckSpeciesSetTag
    python -m scripts.run_healthchecks -d 'homo_sapiens_core_.+' SeqRegionsTopLevel Ditag
    python -m scripts.run_healthchecks --list

Options:
    -d PATTERN           Regex for primary databases (repeatable)
    -d2 PATTERN          Regex for secondary databases (repeatable)
    --host/--port/--user/--password
                         Primary server (defaults from PRIMARY_DB_* config)
    --host2/--port2/--user2/--password2
                         Secondary server (defaults from SECONDARY_DB_* config,
                         falling back to the primary server)
    --workers N          Checks to run at once
    --verbose            Print every finding, not just problems
    --json               Output results as JSON
    --list               List available checks and exit

Exit codes:
    0 = All checks passed
    1 = At least one check failed
    2 = Bad arguments or no databases matched
"""

import sys
import argparse
import json
from pathlib import Path
from typing import List, Optional

# Add src to path
src_dir = Path(__file__).parent.parent
sys.path.insert(0, str(src_dir.absolute()))

from utils.config import (
    PRIMARY_DB_HOST, PRIMARY_DB_PORT, PRIMARY_DB_USER, PRIMARY_DB_PASSWORD,
    SECONDARY_DB_HOST, SECONDARY_DB_PORT, SECONDARY_DB_USER, SECONDARY_DB_PASSWORD,
    MAX_CHECK_WORKERS,
)
from utils.logger import logger
from database.audit import InMemoryReportSink
from database.connection import DatabaseConnection, QueryError, build_server_url
from database.registry import DatabaseRegistry
from healthchecks import CHECKS, run_checks


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run data-integrity health checks against genomic databases"
    )
    parser.add_argument('checks', nargs='*', help='Names of the checks to run (default: all)')
    parser.add_argument('-d', dest='primary_patterns', action='append', default=[],
                        help='Regex for primary databases (repeatable)')
    parser.add_argument('-d2', dest='secondary_patterns', action='append', default=[],
                        help='Regex for secondary databases (repeatable)')
    parser.add_argument('--host', default=PRIMARY_DB_HOST)
    parser.add_argument('--port', type=int, default=PRIMARY_DB_PORT)
    parser.add_argument('--user', default=PRIMARY_DB_USER)
    parser.add_argument('--password', default=PRIMARY_DB_PASSWORD)
    parser.add_argument('--host2', default=SECONDARY_DB_HOST or None)
    parser.add_argument('--port2', type=int, default=SECONDARY_DB_PORT)
    parser.add_argument('--user2', default=SECONDARY_DB_USER)
    parser.add_argument('--password2', default=SECONDARY_DB_PASSWORD)
    parser.add_argument('--workers', type=int, default=MAX_CHECK_WORKERS,
                        help='Number of checks to run at once')
    parser.add_argument('--verbose', '-v', action='store_true', help='Print OK findings too')
    parser.add_argument('--json', action='store_true', help='Output results as JSON')
    parser.add_argument('--list', action='store_true', help='List available checks and exit')
    return parser


def build_registries(args: argparse.Namespace):
    """
    Build the primary and (optional) secondary registries from the CLI arguments.

    The server connections are only used to list schemas and are closed
    before returning; each registry entry has its own pool.
    """
    primary_server = DatabaseConnection(
        url=build_server_url(args.host, args.port, args.user, args.password),
        name=args.host,
    )
    servers = [primary_server]
    try:
        primary = DatabaseRegistry.from_server(primary_server, args.primary_patterns, name="primary")

        secondary = None
        if args.secondary_patterns:
            if args.host2:
                secondary_server = DatabaseConnection(
                    url=build_server_url(args.host2, args.port2, args.user2, args.password2),
                    name=args.host2,
                )
                servers.append(secondary_server)
            else:
                secondary_server = primary_server
            secondary = DatabaseRegistry.from_server(secondary_server, args.secondary_patterns, name="secondary")
    finally:
        for server in servers:
            server.close()

    return primary, secondary


def print_report(results, sink: InMemoryReportSink, verbose: bool) -> None:
    by_check = sink.by_check()
    for check_name, passed in results.items():
        status = "PASS" if passed else "FAIL"
        print(f"{check_name}: {status}")
        for finding in by_check.get(check_name, []):
            if finding.is_problem or verbose:
                print(f"  [{finding.severity.value}] {finding.subject}: {finding.message}")

    failed = [name for name, passed in results.items() if not passed]
    print()
    print("=" * 60)
    print("HEALTHCHECK SUMMARY")
    print("=" * 60)
    print(f"Checks run: {len(results)}")
    print(f"Checks failed: {len(failed)}")
    print(f"Problems reported: {len(sink.problems())}")
    print()
    print("FAILED" if failed else "PASSED - All checks passed")


def report_run(args: argparse.Namespace, primary: DatabaseRegistry,
               secondary: Optional[DatabaseRegistry]) -> int:
    if len(primary) == 0:
        print(f"Error: No databases matched {args.primary_patterns}")
        return 2

    check_names = args.checks or list(CHECKS)
    checks = [CHECKS[name]() for name in check_names]

    sink = InMemoryReportSink()
    results = run_checks(checks, primary, secondary, sink, max_workers=args.workers)

    if args.json:
        output = {
            'checks_run': len(results),
            'overall_passed': all(results.values()),
            'results': [
                {
                    'check': name,
                    'passed': passed,
                    'findings': [f.to_dict() for f in sink.by_check().get(name, [])
                                 if f.is_problem or args.verbose],
                }
                for name, passed in results.items()
            ],
        }
        print(json.dumps(output, indent=2))
    else:
        print_report(results, sink, args.verbose)

    return 0 if all(results.values()) else 1


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.list:
        for name, cls in CHECKS.items():
            print(f"{name}: {cls.description}")
        return 0

    unknown = [name for name in args.checks if name not in CHECKS]
    if unknown:
        print(f"Error: Unknown check(s): {', '.join(unknown)}. Use --list to see available checks")
        return 2

    if not args.primary_patterns:
        print("Error: At least one -d pattern is required")
        return 2

    try:
        primary, secondary = build_registries(args)
    except QueryError as e:
        logger.error(f"Could not build database registries: {e}")
        print(f"Error: Could not build database registries: {e}")
        return 2

    try:
        return report_run(args, primary, secondary)
    finally:
        primary.close()
        if secondary is not None:
            secondary.close()


if __name__ == '__main__':
    sys.exit(main())
