"""
Per-invocation check context.

One CheckContext is built for every health check run. It carries the two
registries, the report sink and the outcome accumulator, so nothing is shared
between checks that run at the same time (apart from the thread-safe sink).
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from database.connection import QueryError
from database.registry import DatabaseRegistry
from utils.logger import log_check_error

from .findings import ReportSink, Severity
from .outcome import CheckOutcome


class StructuralPreconditionError(Exception):
    """
    A lookup every later sub-check depends on came back empty.

    Fatal for the current test case only: it is reported as a PROBLEM and the
    test case returns failure straight away.
    """

    def __init__(self, subject: str, message: str):
        super().__init__(message)
        self.subject = subject
        self.message = message


@dataclass
class CheckContext:
    check_name: str
    primary: DatabaseRegistry
    sink: ReportSink
    secondary: Optional[DatabaseRegistry] = None
    outcome: CheckOutcome = field(default_factory=CheckOutcome)

    def report(self, severity: Severity, subject: str, message: str) -> None:
        if severity == Severity.PROBLEM:
            self.sink.report_problem(subject, message, check_name=self.check_name)
        else:
            self.sink.report_ok(subject, message, check_name=self.check_name)

    def report_problem(self, subject: str, message: str) -> None:
        self.report(Severity.PROBLEM, subject, message)

    def report_ok(self, subject: str, message: str) -> None:
        self.report(Severity.OK, subject, message)

    def run_sub_check(self, subject: str, sub_check: Callable[..., bool], *args: Any, **kwargs: Any) -> bool:
        """
        Run one sub-check and fold its result into the outcome.

        A QueryError marks the sub-check failed and is reported against
        `subject`; sibling sub-checks are unaffected.
        StructuralPreconditionError is not caught here.
        """
        try:
            result = bool(sub_check(*args, **kwargs))
        except QueryError as e:
            log_check_error(e, self.check_name, subject)
            self.report_problem(subject, f"{getattr(sub_check, '__name__', 'sub-check')} could not run: {e}")
            result = False
        self.outcome &= result
        return result
