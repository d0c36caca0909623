"""
Cross-registry entity resolution.

Matches a species named in one database (e.g. a compara genome_db row) to the
database that holds that species in another registry, tolerating case,
whitespace and historical names.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from database.registry import DatabaseRegistry, DatabaseType, RegistryEntry

from .species import normalize_name, resolve_alias

PRODUCTION_NAME_SQL = "SELECT meta_value FROM meta WHERE meta_key = 'species.production_name'"


@dataclass(frozen=True)
class Resolution:
    raw_name: str
    canonical_name: str
    entry: RegistryEntry


class ProductionNameStatus(Enum):
    MATCH = "match"
    MISMATCH = "mismatch"
    UNRESOLVED = "unresolved"


@dataclass(frozen=True)
class ProductionNameResult:
    raw_name: str
    status: ProductionNameStatus
    canonical_name: str
    production_name: Optional[str] = None
    database: Optional[str] = None


class CrossRegistryResolver:
    """
    Resolves raw entity names against a target registry.

    Args:
        alias_resolver: name -> canonical name (defaults to the species alias table)
        db_type: database type to look for in the target registry
    """

    def __init__(self, alias_resolver: Callable[[str], str] = resolve_alias,
                 db_type: DatabaseType = DatabaseType.CORE):
        self.alias_resolver = alias_resolver
        self.db_type = db_type

    def resolve(self, raw_name: str, target: DatabaseRegistry) -> Optional[Resolution]:
        """Return the first matching database in the target, or None."""
        canonical = self.alias_resolver(raw_name)
        entries = target.get_by_key(canonical, self.db_type)
        if not entries:
            # Entry species come from database names; they can carry aliases too
            entries = [
                e for e in target.get_all(self.db_type)
                if e.species is not None and self.alias_resolver(e.species) == canonical
            ]
        if not entries:
            return None
        return Resolution(raw_name=raw_name, canonical_name=canonical, entry=entries[0])

    def verify_production_name(self, raw_name: str, target: DatabaseRegistry) -> ProductionNameResult:
        """
        Resolve `raw_name` and compare the target's species.production_name with it.

        The source name is compared in normalized form (lower-case, '_' for
        whitespace) by exact string equality. Aliases are not applied to the
        comparison, so a genome_db called "human" still fails against
        "homo_sapiens".

        Raises:
            QueryError: If the target database cannot be queried
        """
        resolution = self.resolve(raw_name, target)
        if resolution is None:
            return ProductionNameResult(
                raw_name=raw_name,
                status=ProductionNameStatus.UNRESOLVED,
                canonical_name=self.alias_resolver(raw_name),
            )

        with resolution.entry.connect() as db:
            production_name = db.scalar(PRODUCTION_NAME_SQL)

        status = (
            ProductionNameStatus.MATCH
            if production_name is not None and str(production_name) == normalize_name(raw_name)
            else ProductionNameStatus.MISMATCH
        )
        return ProductionNameResult(
            raw_name=raw_name,
            status=status,
            canonical_name=resolution.canonical_name,
            production_name=None if production_name is None else str(production_name),
            database=resolution.entry.name,
        )
