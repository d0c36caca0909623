"""
Snapshot Comparison
===================

Compares a current aggregate against a reference aggregate (usually the
previous release) and reports regressions only.

Rules, for every key K in the reference:
- K missing from current            -> MISSING_IN_CURRENT
- current[K] < reference[K]         -> COUNT_DECREASED
- current[K] >= reference[K]        -> nothing (growth is acceptable)

Keys that only exist in the current aggregate are new entities and are never
inspected.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Hashable, List, Mapping, Optional, TypeVar

V = TypeVar("V")


class DiscrepancyKind(Enum):
    MISSING_IN_CURRENT = "missing_in_current"
    COUNT_DECREASED = "count_decreased"
    COUNT_UNCHANGED_OR_INCREASED = "count_unchanged_or_increased"


@dataclass(frozen=True)
class DiscrepancyRecord(Generic[V]):
    """One key that regressed relative to the reference aggregate."""

    key: Hashable
    kind: DiscrepancyKind
    reference_value: V
    current_value: Optional[V] = None


def find_missing(current: Mapping[Hashable, object], reference: Mapping[Hashable, V]) -> List[DiscrepancyRecord]:
    """Keys present in the reference but absent from current, in reference order."""
    return [
        DiscrepancyRecord(key=key, kind=DiscrepancyKind.MISSING_IN_CURRENT, reference_value=value)
        for key, value in reference.items()
        if key not in current
    ]


def compare(current: Mapping[Hashable, int], reference: Mapping[Hashable, int]) -> List[DiscrepancyRecord]:
    """
    Compare two count aggregates.

    Args:
        current: Counts from the database under test
        reference: Counts from the reference database

    Returns:
        One DiscrepancyRecord per regressed key, in reference iteration order
    """
    discrepancies: List[DiscrepancyRecord] = []
    for key, reference_value in reference.items():
        if key not in current:
            discrepancies.append(DiscrepancyRecord(
                key=key,
                kind=DiscrepancyKind.MISSING_IN_CURRENT,
                reference_value=reference_value,
            ))
        elif current[key] < reference_value:
            discrepancies.append(DiscrepancyRecord(
                key=key,
                kind=DiscrepancyKind.COUNT_DECREASED,
                reference_value=reference_value,
                current_value=current[key],
            ))
    return discrepancies
