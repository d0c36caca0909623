"""
Integration test fixtures and configuration.

Provides in-memory SQLite databases laid out like Ensembl core and compara
schemas (only the tables the checks touch). Each database gets its own
engine with a StaticPool so every connection sees the same data.

Fixture Types:
- sqlite_entry: factory building a RegistryEntry from DDL + inserts
- compara_schema / core_schema: CREATE TABLE statements
"""

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.pool import StaticPool

from database.connection import DatabaseConnection
from database.registry import RegistryEntry, parse_database_name


COMPARA_SCHEMA = [
    "CREATE TABLE genome_db (genome_db_id INTEGER PRIMARY KEY, name TEXT, assembly_default INTEGER)",
    "CREATE TABLE species_set (species_set_id INTEGER, genome_db_id INTEGER)",
    "CREATE TABLE species_set_tag (species_set_id INTEGER, tag TEXT, value TEXT)",
    "CREATE TABLE method_link (method_link_id INTEGER PRIMARY KEY, type TEXT, class TEXT)",
    "CREATE TABLE method_link_species_set ("
    " method_link_species_set_id INTEGER PRIMARY KEY, method_link_id INTEGER,"
    " species_set_id INTEGER, name TEXT)",
    "CREATE TABLE method_link_species_set_tag (method_link_species_set_id INTEGER, tag TEXT, value TEXT)",
]

CORE_SCHEMA = [
    "CREATE TABLE meta (meta_id INTEGER PRIMARY KEY, species_id INTEGER, meta_key TEXT, meta_value TEXT)",
    "CREATE TABLE attrib_type (attrib_type_id INTEGER PRIMARY KEY, code TEXT)",
    "CREATE TABLE coord_system (coord_system_id INTEGER PRIMARY KEY, name TEXT, `rank` INTEGER, attrib TEXT)",
    "CREATE TABLE seq_region (seq_region_id INTEGER PRIMARY KEY, name TEXT, coord_system_id INTEGER)",
    "CREATE TABLE seq_region_attrib (seq_region_id INTEGER, attrib_type_id INTEGER, value TEXT)",
    "CREATE TABLE gene (gene_id INTEGER PRIMARY KEY, seq_region_id INTEGER)",
    "CREATE TABLE assembly (asm_seq_region_id INTEGER, cmp_seq_region_id INTEGER)",
    "CREATE TABLE external_db (external_db_id INTEGER PRIMARY KEY, db_name TEXT)",
    "CREATE TABLE seq_region_synonym ("
    " seq_region_synonym_id INTEGER PRIMARY KEY, seq_region_id INTEGER, synonym TEXT, external_db_id INTEGER)",
    "CREATE TABLE ditag (ditag_id INTEGER PRIMARY KEY, name TEXT)",
    "CREATE TABLE ditag_feature (ditag_feature_id INTEGER PRIMARY KEY, ditag_id INTEGER, seq_region_id INTEGER)",
]


def build_sqlite_entry(name, statements, species=None, db_type=None):
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    with engine.begin() as conn:
        for statement in statements:
            conn.execute(text(statement))

    parsed_species, parsed_type = parse_database_name(name)
    return RegistryEntry(
        name=name,
        db_type=db_type or parsed_type,
        connection=DatabaseConnection(engine=engine, name=name),
        species=species if species is not None else parsed_species,
    )


@pytest.fixture
def sqlite_entry():
    """
    Factory for SQLite-backed registry entries.

    Usage:
        entry = sqlite_entry("ensembl_compara_75", COMPARA_SCHEMA + inserts)
    """
    entries = []

    def _make(name, statements, species=None, db_type=None):
        entry = build_sqlite_entry(name, statements, species=species, db_type=db_type)
        entries.append(entry)
        return entry

    yield _make

    for entry in entries:
        entry.connection.close()


@pytest.fixture
def compara_schema():
    return list(COMPARA_SCHEMA)


@pytest.fixture
def core_schema():
    return list(CORE_SCHEMA)
