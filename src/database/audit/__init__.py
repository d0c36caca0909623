"""
Reference-Diff Consistency Checking
===================================

Building blocks shared by every health check that compares a database with a
reference copy or with another registry.

Components:
- aggregate.py: immutable keyed aggregates extracted from one query
- comparator.py: regression-only comparison of current vs reference aggregates
- species.py: species name normalization and alias table
- resolver.py: matching named entities across two registries
- findings.py: OK/PROBLEM findings and the report sink
- outcome.py: non-short-circuiting pass/fail accumulator
- context.py: per-invocation context (registries, sink, outcome)

Usage:
    from database.audit import extract_counts, compare

    with current_entry.connect() as db:
        current = extract_counts(db, sql)
    with reference_entry.connect() as db:
        reference = extract_counts(db, sql)

    for discrepancy in compare(current, reference):
        context.report_problem(current_entry.name, describe(discrepancy))
"""

from .aggregate import KeyedAggregate, CountAggregate, ValueAggregate, extract_counts, extract_values
from .comparator import DiscrepancyKind, DiscrepancyRecord, compare, find_missing
from .species import SpeciesAliasTable, normalize_name, resolve_alias
from .resolver import CrossRegistryResolver, Resolution, ProductionNameResult, ProductionNameStatus
from .findings import ConsistencyFinding, Severity, ReportSink, InMemoryReportSink
from .outcome import CheckOutcome
from .context import CheckContext, StructuralPreconditionError

__all__ = [
    "KeyedAggregate",
    "CountAggregate",
    "ValueAggregate",
    "extract_counts",
    "extract_values",
    "DiscrepancyKind",
    "DiscrepancyRecord",
    "compare",
    "find_missing",
    "SpeciesAliasTable",
    "normalize_name",
    "resolve_alias",
    "CrossRegistryResolver",
    "Resolution",
    "ProductionNameResult",
    "ProductionNameStatus",
    "ConsistencyFinding",
    "Severity",
    "ReportSink",
    "InMemoryReportSink",
    "CheckOutcome",
    "CheckContext",
    "StructuralPreconditionError",
]
