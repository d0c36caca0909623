"""
Consistency findings and the report sink they are routed to.

Every evaluated condition produces a finding, including the success path.
An explicit OK is what distinguishes a clean run from one that silently
checked nothing.
"""

import threading
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Dict, List, Any

from utils.logger import logger, log_finding


class Severity(str, Enum):
    OK = "OK"
    PROBLEM = "PROBLEM"


@dataclass(frozen=True)
class ConsistencyFinding:
    """Result of one evaluated condition."""

    check_name: str
    severity: Severity
    subject: str  # usually a database name
    message: str

    @property
    def is_problem(self) -> bool:
        return self.severity == Severity.PROBLEM

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["severity"] = self.severity.value
        return data


class ReportSink:
    """
    Destination for findings.

    Sinks are fire-and-forget: report_* never raises into the calling check.
    Subclasses implement _store().
    """

    def record(self, finding: ConsistencyFinding) -> None:
        try:
            self._store(finding)
        except Exception as e:
            logger.error("Report sink failed to record finding", extra={
                "event_type": "sink_error",
                "check_name": finding.check_name,
                "error_type": type(e).__name__,
                "error_message": str(e),
            })

    def _store(self, finding: ConsistencyFinding) -> None:
        raise NotImplementedError

    def report_problem(self, subject: str, message: str, check_name: str = "") -> None:
        self.record(ConsistencyFinding(check_name, Severity.PROBLEM, subject, message))

    def report_ok(self, subject: str, message: str, check_name: str = "") -> None:
        self.record(ConsistencyFinding(check_name, Severity.OK, subject, message))


class InMemoryReportSink(ReportSink):
    """
    Keeps every finding in memory for later presentation.

    Safe to share between checks running in a thread pool.
    """

    def __init__(self, log_findings: bool = True):
        self._findings: List[ConsistencyFinding] = []
        self._lock = threading.Lock()
        self.log_findings = log_findings

    def _store(self, finding: ConsistencyFinding) -> None:
        with self._lock:
            self._findings.append(finding)
        if self.log_findings:
            log_finding(finding.check_name, finding.severity.value, finding.subject, finding.message)

    @property
    def findings(self) -> List[ConsistencyFinding]:
        with self._lock:
            return list(self._findings)

    def problems(self) -> List[ConsistencyFinding]:
        return [f for f in self.findings if f.severity == Severity.PROBLEM]

    def oks(self) -> List[ConsistencyFinding]:
        return [f for f in self.findings if f.severity == Severity.OK]

    def by_check(self) -> Dict[str, List[ConsistencyFinding]]:
        grouped: Dict[str, List[ConsistencyFinding]] = {}
        for finding in self.findings:
            grouped.setdefault(finding.check_name, []).append(finding)
        return grouped
