"""
Genome database health checks.

How to add a check:
1. Subclass SingleDatabaseCheck (one database at a time) or
   MultiDatabaseCheck (whole registries) in a new module
2. Report every evaluated condition through the context (OK and PROBLEM)
3. Register the class in CHECKS below
"""

from typing import Dict, Type

from .base import HealthCheck, SingleDatabaseCheck, MultiDatabaseCheck
from .ditag import Ditag
from .method_link_species_set_tag import CheckMethodLinkSpeciesSetTag
from .seq_regions_top_level import SeqRegionsTopLevel
from .species_set_tag import CheckSpeciesSetTag
from .runner import run_check, run_checks

CHECKS: Dict[str, Type[HealthCheck]] = {
    cls.__name__: cls
    for cls in (
        CheckSpeciesSetTag,
        CheckMethodLinkSpeciesSetTag,
        SeqRegionsTopLevel,
        Ditag,
    )
}

__all__ = [
    "HealthCheck",
    "SingleDatabaseCheck",
    "MultiDatabaseCheck",
    "CheckSpeciesSetTag",
    "CheckMethodLinkSpeciesSetTag",
    "SeqRegionsTopLevel",
    "Ditag",
    "CHECKS",
    "run_check",
    "run_checks",
]
