"""
Top-level seq_region checks for core databases.

Checks that all seq_regions comprising genes are marked as toplevel in
seq_region_attrib, that there is at least one toplevel seq_region (needed by
compara), that there is a single rank-1 co-ordinate system, that toplevel
regions have assembly information, and (for GCA assemblies) that toplevel
regions carry RefSeq and INSDC synonyms.
"""

from database.audit import CheckContext, StructuralPreconditionError, extract_counts, find_missing
from database.connection import QueryExecutor
from database.registry import DatabaseType, RegistryEntry
from utils.logger import logger

from .base import SingleDatabaseCheck

TOPLEVEL_ATTRIB_SQL = "SELECT attrib_type_id FROM attrib_type WHERE code = 'toplevel'"

ASSEMBLY_ACCESSION_SQL = "SELECT meta_value FROM meta WHERE meta_key = 'assembly.accession'"

TOPLEVEL_GENES_SQL = (
    "SELECT COUNT(*) FROM seq_region_attrib sra, gene g"
    " WHERE sra.attrib_type_id = :attrib_type_id AND sra.seq_region_id = g.seq_region_id"
)

GENES_SQL = "SELECT COUNT(*) FROM gene"

TOPLEVEL_REGIONS_SQL = "SELECT COUNT(*) FROM seq_region_attrib WHERE attrib_type_id = :attrib_type_id"

RANK_ONE_SQL = "SELECT COUNT(*) FROM coord_system WHERE `rank` = 1"

SPECIES_IDS_SQL = "SELECT DISTINCT species_id FROM meta WHERE species_id IS NOT NULL"

TOPLEVEL_WITHOUT_ASSEMBLY_WHERE = (
    " FROM seq_region_attrib sra"
    " LEFT JOIN assembly a ON sra.seq_region_id = a.asm_seq_region_id"
    " JOIN seq_region s ON s.seq_region_id = sra.seq_region_id"
    " JOIN coord_system c ON c.coord_system_id = s.coord_system_id"
    " WHERE a.asm_seq_region_id IS NULL AND sra.attrib_type_id = :attrib_type_id"
    " AND c.attrib NOT LIKE '%sequence_level%'"
)

TOPLEVEL_WITHOUT_ASSEMBLY_SQL = "SELECT COUNT(*)" + TOPLEVEL_WITHOUT_ASSEMBLY_WHERE

TOPLEVEL_NAMES_SQL = (
    "SELECT DISTINCT s.name, 1 FROM seq_region s, seq_region_attrib sa"
    " WHERE s.seq_region_id = sa.seq_region_id AND s.name NOT LIKE 'LRG%' AND s.name <> 'MT'"
    " AND sa.attrib_type_id = :attrib_type_id"
)

SYNONYM_COUNTS_SQL = (
    "SELECT s.name, COUNT(*) FROM seq_region s, seq_region_synonym ss, external_db e"
    " WHERE s.seq_region_id = ss.seq_region_id AND ss.external_db_id = e.external_db_id"
    " AND e.db_name = :db_name GROUP BY s.name"
)

REQUIRED_SYNONYM_SOURCES = ("RefSeq_genomic", "INSDC")


class SeqRegionsTopLevel(SingleDatabaseCheck):
    """Toplevel seq_region consistency for core databases."""

    description = (
        "Check that all seq_regions comprising genes are marked as toplevel in seq_region_attrib, "
        "and that there is at least one toplevel seq_region. Also check that toplevel seq_regions "
        "have information in the assembly table and the expected synonyms."
    )
    groups = ("post_genebuild", "pre-compara-handover", "post-compara-handover", "post-projection")
    team = "genebuild"
    database_types = (DatabaseType.CORE,)

    def check_database(self, context: CheckContext, entry: RegistryEntry, db: QueryExecutor) -> bool:
        attrib_type_id = self.get_toplevel_attrib_type_id(entry, db)
        assembly_accession = db.scalar(ASSEMBLY_ACCESSION_SQL)

        subject = entry.name
        result = True
        result &= context.run_sub_check(subject, self.check_genes, context, entry, db, attrib_type_id)
        result &= context.run_sub_check(subject, self.check_one_seq_region, context, entry, db, attrib_type_id)
        result &= context.run_sub_check(subject, self.check_rank_one, context, entry, db)
        result &= context.run_sub_check(subject, self.check_assembly_table, context, entry, db, attrib_type_id)

        if assembly_accession is not None and "GCA" in str(assembly_accession):
            result &= context.run_sub_check(subject, self.check_synonyms, context, entry, db, attrib_type_id)

        return result

    def get_toplevel_attrib_type_id(self, entry: RegistryEntry, db: QueryExecutor) -> int:
        value = db.scalar(TOPLEVEL_ATTRIB_SQL)
        if value is None or str(value) == "":
            raise StructuralPreconditionError(
                entry.name, "Can't find a seq_region attrib_type with code 'toplevel', exiting"
            )
        logger.info(f"attrib_type_id for toplevel in {entry.name}: {value}")
        return int(value)

    def check_genes(self, context: CheckContext, entry: RegistryEntry, db: QueryExecutor,
                    attrib_type_id: int) -> bool:
        params = {"attrib_type_id": attrib_type_id}
        non_toplevel_genes = db.count(GENES_SQL) - db.count(TOPLEVEL_GENES_SQL, params)

        if non_toplevel_genes > 0:
            context.report_problem(
                entry.name,
                f"{non_toplevel_genes} genes are on seq_regions which are not toplevel; "
                "this may cause problems for Compara and slow down the mapper.",
            )
            return False

        context.report_ok(entry.name, "All genes are on toplevel seq regions")
        return True

    def check_one_seq_region(self, context: CheckContext, entry: RegistryEntry, db: QueryExecutor,
                             attrib_type_id: int) -> bool:
        rows = db.count(TOPLEVEL_REGIONS_SQL, {"attrib_type_id": attrib_type_id})
        if rows == 0:
            context.report_problem(
                entry.name, "No seq_regions are marked as toplevel. This may cause problems for Compara"
            )
            return False

        context.report_ok(entry.name, f"{rows} seq_regions are marked as toplevel")
        return True

    def check_rank_one(self, context: CheckContext, entry: RegistryEntry, db: QueryExecutor) -> bool:
        """One co-ordinate system with rank 1 (one per species id); skipped for collections."""
        if entry.is_multi_species:
            return True

        rows = db.count(RANK_ONE_SQL)
        if rows == 0:
            context.report_problem(entry.name, "No co-ordinate systems have rank = 1")
            return False

        if rows > 1:
            species_count = len(db.column(SPECIES_IDS_SQL))
            if rows != species_count:
                context.report_problem(
                    entry.name, f"{rows} rows in coord_system have a rank of 1. There should be {species_count}"
                )
                return False
            context.report_ok(entry.name, f"{species_count} co-ordinate systems with rank = 1")
            return True

        context.report_ok(entry.name, "One co-ordinate system has rank = 1")
        return True

    def check_assembly_table(self, context: CheckContext, entry: RegistryEntry, db: QueryExecutor,
                             attrib_type_id: int) -> bool:
        rows = db.count(TOPLEVEL_WITHOUT_ASSEMBLY_SQL, {"attrib_type_id": attrib_type_id})
        if rows > 0:
            query = ("SELECT s.name" + TOPLEVEL_WITHOUT_ASSEMBLY_WHERE).replace(":attrib_type_id", str(attrib_type_id))
            context.report_problem(
                entry.name,
                f"There are {rows} toplevel regions in the database with no assembly information. "
                f"Try the query to get the regions: {query}",
            )
            return False

        context.report_ok(entry.name, "All toplevel regions have assembly information")
        return True

    def check_synonyms(self, context: CheckContext, entry: RegistryEntry, db: QueryExecutor,
                       attrib_type_id: int) -> bool:
        """Every toplevel region (except LRGs and MT) needs a RefSeq_genomic and an INSDC synonym."""
        regions = extract_counts(db, TOPLEVEL_NAMES_SQL, {"attrib_type_id": attrib_type_id})

        result = True
        for source in REQUIRED_SYNONYM_SOURCES:
            synonyms = extract_counts(db, SYNONYM_COUNTS_SQL, {"db_name": source})
            missing = find_missing(synonyms, regions)
            if missing:
                context.report_problem(entry.name, f"{len(missing)} regions do not have a {source} synonym")
                result = False

        if result:
            context.report_ok(entry.name, "All toplevel regions have the required synonyms")
        return result
