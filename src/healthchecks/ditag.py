"""
Ditag checks for core databases.

Checks that ditag_features exist, that they all have a ditag entry and that
all chromosomes have some ditag_features.
"""

from database.audit import CheckContext, StructuralPreconditionError, extract_counts
from database.connection import QueryExecutor
from database.registry import DatabaseType, RegistryEntry
from utils.logger import logger

from .base import SingleDatabaseCheck

# max number of top-level seq regions to check
MAX_TOP_LEVEL = 100

TOP_LEVEL_COORD_SYSTEM_SQL = "SELECT coord_system_id FROM coord_system WHERE `rank` = 1 LIMIT 1"

ORPHAN_DITAG_FEATURES_SQL = (
    "SELECT COUNT(*) FROM ditag_feature df LEFT JOIN ditag d ON d.ditag_id = df.ditag_id"
    " WHERE d.ditag_id IS NULL"
)

# A "chromosome" is a top-level seq_region with a short name that has no
# '_' or '.' in it and does not start with Un or MT
CHROMOSOMES_SQL = (
    "SELECT seq_region_id, name FROM seq_region WHERE coord_system_id = :coord_system_id"
    " AND INSTR(name, '_') = 0 AND INSTR(name, '.') = 0"
    " AND name NOT LIKE 'Un%' AND name NOT LIKE 'MT%' AND LENGTH(name) < 3"
    " ORDER BY name LIMIT :limit"
)

DITAG_FEATURES_PER_REGION_SQL = "SELECT seq_region_id, COUNT(*) FROM ditag_feature GROUP BY seq_region_id"


class Ditag(SingleDatabaseCheck):
    """Ditag and ditag_feature consistency."""

    description = (
        "Checks that ditag_features exist, that they all have a ditag entry "
        "and that all chromosomes have some ditag_features"
    )
    groups = ("post_genebuild", "release")
    database_types = (DatabaseType.CORE,)

    def check_database(self, context: CheckContext, entry: RegistryEntry, db: QueryExecutor) -> bool:
        result = True
        result &= context.run_sub_check(entry.name, self.check_existence, context, entry, db)
        result &= context.run_sub_check(entry.name, self.check_ditag_relation, context, entry, db)
        result &= context.run_sub_check(entry.name, self.check_all_chromosomes_have_ditag_features,
                                        context, entry, db)
        return result

    def check_existence(self, context: CheckContext, entry: RegistryEntry, db: QueryExecutor) -> bool:
        result = True

        if not db.table_has_rows("ditag"):
            context.report_problem(entry.name, "No ditags in database")
            result = False

        if not db.table_has_rows("ditag_feature"):
            context.report_problem(entry.name, "No ditag features in database")
            result = False

        if result:
            context.report_ok(entry.name, "Found entries in ditag & ditag_feature tables.")
        return result

    def check_ditag_relation(self, context: CheckContext, entry: RegistryEntry, db: QueryExecutor) -> bool:
        """All ditag_features must have a ditag entry."""
        count = db.count(ORPHAN_DITAG_FEATURES_SQL)
        if count > 0:
            context.report_problem(entry.name, f"There are {count} ditag_features without ditag entry.")
            return False

        context.report_ok(entry.name, "All ditag_features have ditag entries.")
        return True

    def check_all_chromosomes_have_ditag_features(self, context: CheckContext, entry: RegistryEntry,
                                                   db: QueryExecutor) -> bool:
        coord_system_id = db.scalar(TOP_LEVEL_COORD_SYSTEM_SQL)
        if coord_system_id is None:
            raise StructuralPreconditionError(entry.name, "Can't get top-level co-ordinate system")

        chromosomes = db.execute(CHROMOSOMES_SQL, {"coord_system_id": coord_system_id, "limit": MAX_TOP_LEVEL})
        features = extract_counts(db, DITAG_FEATURES_PER_REGION_SQL)

        if not chromosomes:
            context.report_ok(entry.name, "No chromosome-like top-level seq_regions to check for ditag_features")
            return True

        result = True
        for seq_region_id, name in chromosomes:
            logger.debug(f"Counting ditag_features on chromosome {name}")
            rows = features.get(seq_region_id, 0)
            if rows == 0:
                context.report_problem(
                    entry.name, f"Chromosome {name} (seq_region_id {seq_region_id}) has no ditag_features"
                )
                result = False
            else:
                context.report_ok(entry.name, f"Chromosome {name} has {rows} ditag_features")

        if len(chromosomes) == MAX_TOP_LEVEL:
            logger.warning(f"Only checked first {MAX_TOP_LEVEL} seq_regions of {entry.name}")

        return result
