"""
Genome Database Health Checks - Database Registry
Enumerates the databases a run should look at and groups them by type and
species.

Two registries are built per run:
- primary: the databases being released (checked)
- secondary: the reference set, usually the previous release on another server

Database names follow the Ensembl convention, for example:
    homo_sapiens_core_75_37          -> species homo_sapiens, type core
    ensembl_compara_75               -> compara, no species
    bacteria_1_collection_core_22_75_1 -> multi-species collection
"""

import re
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Generator, Iterable, Iterator, List, Optional, Sequence, Tuple

from database.connection import DatabaseConnection, QueryExecutor
from utils.logger import logger


class DatabaseType(Enum):
    """Schema flavours a health check can be pointed at."""

    CORE = "core"
    COMPARA = "compara"
    OTHERFEATURES = "otherfeatures"
    CDNA = "cdna"
    VEGA = "vega"
    RNASEQ = "rnaseq"
    ESTGENE = "estgene"
    FUNCGEN = "funcgen"
    VARIATION = "variation"
    UNKNOWN = "unknown"


# <species>_<type>_<release>[_<assembly>]
_SPECIES_DB_PATTERN = re.compile(
    r"^(?P<species>[a-z0-9]+(?:_[a-z0-9]+)*?)_"
    r"(?P<type>core|otherfeatures|cdna|vega|rnaseq|estgene|funcgen|variation)_"
    r"\d+(?:_\w+)?$"
)
_COMPARA_DB_PATTERN = re.compile(r"(^|_)compara(_|$)")
_COLLECTION_MARKER = "_collection"


def parse_database_name(name: str) -> Tuple[Optional[str], DatabaseType]:
    """
    Split a database name into (species, type).

    Compara databases return species None. Names that do not follow the
    convention come back as (None, DatabaseType.UNKNOWN).
    """
    lowered = name.lower()
    if _COMPARA_DB_PATTERN.search(lowered):
        return None, DatabaseType.COMPARA

    match = _SPECIES_DB_PATTERN.match(lowered)
    if not match:
        return None, DatabaseType.UNKNOWN

    return match.group("species"), DatabaseType(match.group("type"))


@dataclass(frozen=True)
class RegistryEntry:
    """One database known to a registry."""

    name: str
    db_type: DatabaseType
    connection: DatabaseConnection = field(compare=False, repr=False)
    species: Optional[str] = None

    @property
    def is_multi_species(self) -> bool:
        return _COLLECTION_MARKER in self.name.lower()

    @contextmanager
    def connect(self) -> Generator[QueryExecutor, None, None]:
        """Open a scoped connection to this database."""
        with self.connection.get_connection() as db:
            yield db


class DatabaseRegistry:
    """
    A named collection of databases, queried as a unit.

    Usage:
        registry = DatabaseRegistry.from_server(server, [r"ensembl_compara_.+"])
        for entry in registry.get_all(DatabaseType.COMPARA):
            with entry.connect() as db:
                ...
    """

    def __init__(self, entries: Iterable[RegistryEntry] = (), name: str = "primary"):
        self.name = name
        self._entries: List[RegistryEntry] = []
        seen = set()
        for entry in entries:
            if entry.name in seen:
                continue
            seen.add(entry.name)
            self._entries.append(entry)

    @classmethod
    def from_server(cls, server: DatabaseConnection, patterns: Sequence[str],
                    name: str = "primary") -> "DatabaseRegistry":
        """
        Build a registry from every database on a server matching any pattern.

        Args:
            server: Connection to the server (no default schema needed)
            patterns: Regular expressions matched against the full database name
            name: Registry label used in logs

        Raises:
            QueryError: If the server cannot be listed
        """
        compiled = [re.compile(p) for p in patterns]
        entries = []
        for database in server.list_databases():
            if not any(p.fullmatch(database) for p in compiled):
                continue
            species, db_type = parse_database_name(database)
            entries.append(RegistryEntry(
                name=database,
                db_type=db_type,
                connection=server.for_database(database),
                species=species,
            ))

        logger.info("Database registry built", extra={
            "registry": name,
            "patterns": list(patterns),
            "database_count": len(entries),
        })
        return cls(entries, name=name)

    @classmethod
    def combined(cls, *registries: Optional["DatabaseRegistry"], name: str = "combined") -> "DatabaseRegistry":
        """Union of several registries; the first registry wins on duplicate names."""
        entries: List[RegistryEntry] = []
        for registry in registries:
            if registry is not None:
                entries.extend(registry)
        return cls(entries, name=name)

    def __iter__(self) -> Iterator[RegistryEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def get_all(self, db_type: Optional[DatabaseType] = None) -> List[RegistryEntry]:
        if db_type is None:
            return list(self._entries)
        return [e for e in self._entries if e.db_type == db_type]

    def get_by_key(self, species: str, db_type: Optional[DatabaseType] = DatabaseType.CORE) -> List[RegistryEntry]:
        """Return zero or more databases for a canonical species name."""
        return [
            e for e in self.get_all(db_type)
            if e.species is not None and e.species == species
        ]

    def is_multi_species(self, entry: RegistryEntry) -> bool:
        return entry.is_multi_species

    def close(self) -> None:
        """Release the connection pool of every database in the registry."""
        for entry in self._entries:
            entry.connection.close()
