"""
Health check base classes.

HealthCheck.execute() is the only entry point the runner uses. It owns the
verdict: subclasses report findings and fold sub-check results into
context.outcome, and execute() reads the outcome once at the end.
"""

import time
from typing import Sequence, Tuple

from database.audit import CheckContext, StructuralPreconditionError
from database.connection import QueryError, QueryExecutor
from database.registry import DatabaseType, RegistryEntry
from utils.logger import log_check_start, log_check_complete, log_check_error


class HealthCheck:
    """
    Base class for every health check.

    Class attributes:
        description: One line shown by --list
        groups: Named groups the check belongs to (e.g. "compara_homology")
        team: Team responsible for fixing failures
        database_types: Database types the check opens
    """

    description: str = ""
    groups: Tuple[str, ...] = ()
    team: str = ""
    database_types: Tuple[DatabaseType, ...] = ()

    @property
    def name(self) -> str:
        return type(self).__name__

    def execute(self, context: CheckContext) -> bool:
        """
        Run the check and return its verdict.

        A StructuralPreconditionError escaping run() is reported as a PROBLEM
        and fails the check.
        """
        started = time.monotonic()
        log_check_start(self.name, len(self.target_databases(context)))

        try:
            context.outcome &= self.run(context)
        except StructuralPreconditionError as e:
            context.report_problem(e.subject, e.message)
            context.outcome.fail()

        passed = context.outcome.passed
        log_check_complete(self.name, passed, round(time.monotonic() - started, 3))
        return passed

    def target_databases(self, context: CheckContext) -> Sequence[RegistryEntry]:
        entries = []
        for db_type in self.database_types:
            entries.extend(context.primary.get_all(db_type))
        return entries

    def run(self, context: CheckContext) -> bool:
        raise NotImplementedError


class SingleDatabaseCheck(HealthCheck):
    """
    A check run independently against each primary database of the right type.

    Each database is its own test case: a structural precondition failure or
    a connection error stops that database only.
    """

    def run(self, context: CheckContext) -> bool:
        entries = self.target_databases(context)
        if not entries:
            types = "/".join(t.value for t in self.database_types)
            context.report_problem(self.name, f"No {types} databases to check")
            return False

        for entry in entries:
            context.outcome &= self._run_on_entry(context, entry)
        return context.outcome.passed

    def _run_on_entry(self, context: CheckContext, entry: RegistryEntry) -> bool:
        try:
            with entry.connect() as db:
                return self.check_database(context, entry, db)
        except StructuralPreconditionError as e:
            context.report_problem(e.subject, e.message)
            return False
        except QueryError as e:
            log_check_error(e, self.name, entry.name)
            context.report_problem(entry.name, f"Could not check database: {e}")
            return False

    def check_database(self, context: CheckContext, entry: RegistryEntry, db: QueryExecutor) -> bool:
        raise NotImplementedError


class MultiDatabaseCheck(HealthCheck):
    """A check that looks at whole registries (primary and secondary) at once."""

    def run(self, context: CheckContext) -> bool:
        raise NotImplementedError
