"""
Checks on method_link_species_set_tag in compara databases.
"""

from database.audit import CheckContext, StructuralPreconditionError
from database.connection import QueryExecutor
from database.registry import DatabaseType, RegistryEntry

from .base import SingleDatabaseCheck

# One row per multi-species analysis; tree is NULL when the tag is missing
SPECIES_TREES_SQL = (
    "SELECT mlss.method_link_species_set_id, t.value, mlss.name, COUNT(DISTINCT ss.genome_db_id)"
    " FROM method_link_species_set mlss"
    " JOIN method_link ml ON ml.method_link_id = mlss.method_link_id"
    " LEFT JOIN method_link_species_set_tag t"
    "   ON t.method_link_species_set_id = mlss.method_link_species_set_id AND t.tag = 'species_tree'"
    " JOIN species_set ss ON ss.species_set_id = mlss.species_set_id"
    " WHERE (ml.class LIKE 'GenomicAlignTree%' OR ml.class LIKE '%multiple_alignment'"
    "   OR ml.class LIKE '%tree_node')"
    " GROUP BY mlss.method_link_species_set_id, t.value, mlss.name"
    " ORDER BY mlss.method_link_species_set_id"
)


class CheckMethodLinkSpeciesSetTag(SingleDatabaseCheck):
    """Tests that proper entries are in method_link_species_set_tag."""

    description = "Tests that proper entries are in method_link_species_set_tag."
    groups = ("compara_genomic", "compara_homology")
    team = "compara"
    database_types = (DatabaseType.COMPARA,)

    def check_database(self, context: CheckContext, entry: RegistryEntry, db: QueryExecutor) -> bool:
        if not db.table_exists("method_link_species_set_tag"):
            raise StructuralPreconditionError(entry.name, "method_link_species_set_tag table not present")

        return context.run_sub_check(entry.name, self.check_species_trees_are_present, context, entry, db)

    def check_species_trees_are_present(self, context: CheckContext, entry: RegistryEntry,
                                        db: QueryExecutor) -> bool:
        """
        Each multi-species analysis that uses a species tree must have it stored,
        with balanced brackets and one leaf per genome_db.
        """
        result = True
        rows = db.execute(SPECIES_TREES_SQL)
        for mlss_id, tree, mlss_name, num_species in rows:
            label = f"MethodLinkSpeciesSet {mlss_id} ({mlss_name})"
            if tree is None:
                context.report_problem(
                    entry.name, f"{label} does not have its tree in the method_link_species_set_tag table!"
                )
                result = False
            elif tree.count("(") != tree.count(")"):
                context.report_problem(
                    entry.name,
                    f"The tree for {label} does not have the same number of opening and closing brackets!",
                )
                result = False
            elif tree.count(",") + 1 != int(num_species):
                context.report_problem(
                    entry.name,
                    f"The tree for {label} does not have the right number of leaves! "
                    f"({tree.count(',') + 1} leaves for {num_species} species)",
                )
                result = False

        if result:
            context.report_ok(entry.name, f"All {len(rows)} species trees are present and well formed")
        return result
