"""
Runs a batch of health checks.

Each check gets its own CheckContext; the report sink is the only object
shared between checks and it is thread-safe.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Optional, Sequence

from database.audit import CheckContext, ReportSink
from database.registry import DatabaseRegistry
from utils.logger import logger, log_check_error

from .base import HealthCheck


def run_check(check: HealthCheck, primary: DatabaseRegistry, secondary: Optional[DatabaseRegistry],
              sink: ReportSink) -> bool:
    """Run one check in a fresh context and return its verdict."""
    context = CheckContext(
        check_name=check.name,
        primary=primary,
        secondary=secondary,
        sink=sink,
    )
    try:
        return check.execute(context)
    except Exception as e:
        # A bug in one check must not take the rest of the batch down with it
        log_check_error(e, check.name)
        sink.report_problem("", f"Check crashed: {type(e).__name__}: {e}", check_name=check.name)
        return False


def run_checks(
    checks: Sequence[HealthCheck],
    primary: DatabaseRegistry,
    secondary: Optional[DatabaseRegistry],
    sink: ReportSink,
    max_workers: int = 1,
) -> Dict[str, bool]:
    """
    Run every check and collect the verdicts.

    Args:
        checks: Checks to run
        primary: Registry of databases under test
        secondary: Reference registry (may be None)
        sink: Where findings are recorded
        max_workers: Checks to run at once (1 = sequential)

    Returns:
        Check name -> passed
    """
    logger.info(f"Running {len(checks)} health checks with {max_workers} worker(s)")

    if max_workers <= 1:
        return {check.name: run_check(check, primary, secondary, sink) for check in checks}

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {
            check.name: executor.submit(run_check, check, primary, secondary, sink)
            for check in checks
        }
        return {name: future.result() for name, future in futures.items()}
