"""
Species set tag checks for compara databases.

Compares the named species sets of the current compara database against the
previous release, checks that every multiple alignment has a named species
set, and cross-validates genome_db names against the core databases'
species.production_name.

Usage:
    run_healthchecks.py -d 'ensembl_compara_.+' -d2 '.+_core_.+' -d2 '.+_compara_.+' CheckSpeciesSetTag
"""

from database.audit import (
    CheckContext,
    CrossRegistryResolver,
    DiscrepancyKind,
    DiscrepancyRecord,
    ProductionNameStatus,
    StructuralPreconditionError,
    compare,
    extract_counts,
    extract_values,
    find_missing,
)
from database.connection import QueryExecutor
from database.registry import DatabaseRegistry, DatabaseType, RegistryEntry

from .base import MultiDatabaseCheck

NAMED_SPECIES_SETS_SQL = (
    "SELECT value, COUNT(*) FROM species_set_tag WHERE tag = 'name' GROUP BY value"
)

DEFAULT_GENOME_DBS_SQL = (
    "SELECT genome_db.name FROM genome_db WHERE assembly_default = 1"
    " AND name <> 'Ancestral sequences' AND name <> 'ancestral_sequences'"
    " ORDER BY genome_db.genome_db_id"
)

SPECIES_SET_NAMES_SQL = "SELECT species_set_id, value FROM species_set_tag WHERE tag = 'name'"

MULTIPLE_ALIGNMENT_SETS_SQL = (
    "SELECT species_set_id, name FROM method_link_species_set"
    " JOIN method_link USING (method_link_id)"
    " WHERE class LIKE '%multiple_alignment%' OR class LIKE '%tree_alignment%'"
    " OR class LIKE '%ancestral_alignment%'"
)

USAGE = (
    "run_healthchecks.py -d 'ensembl_compara_.+' "
    "-d2 '.+_core_.+' -d2 '.+_compara_.+' CheckSpeciesSetTag"
)


class CheckSpeciesSetTag(MultiDatabaseCheck):
    """Check the content of the species_set_tag table."""

    description = "Check the content of the species_set_tag table"
    groups = ("compara_homology",)
    team = "compara"
    database_types = (DatabaseType.COMPARA,)

    def __init__(self, resolver: CrossRegistryResolver = None):
        self.resolver = resolver or CrossRegistryResolver()

    def run(self, context: CheckContext) -> bool:
        primary_comparas = context.primary.get_all(DatabaseType.COMPARA)
        if not primary_comparas:
            raise StructuralPreconditionError("", f"Cannot find compara database. Usage: {USAGE}")

        secondary_comparas = context.secondary.get_all(DatabaseType.COMPARA) if context.secondary else []
        species_registry = DatabaseRegistry.combined(context.primary, context.secondary, name="species")

        result = True
        for compara in primary_comparas:
            result &= context.run_sub_check(
                compara.name, self.check_production_names, context, compara, species_registry
            )
            result &= context.run_sub_check(
                compara.name, self.check_name_tag_for_multiple_alignments, context, compara
            )

            if not secondary_comparas:
                context.report_problem(
                    compara.name,
                    "Cannot find the compara database in the secondary server. This check expects to find "
                    "a previous version of the compara database for checking that all the *named* "
                    "species_sets are still present in the current database.",
                )
                context.report_problem("USAGE", USAGE)
                context.outcome.fail()
                result = False

            for reference in secondary_comparas:
                result &= context.run_sub_check(
                    compara.name, self.check_set_of_species_sets, context, compara, reference
                )

        return result

    def check_set_of_species_sets(self, context: CheckContext, current: RegistryEntry,
                                  reference: RegistryEntry) -> bool:
        """Every named species set in the reference must still be present, as often."""
        with current.connect() as db:
            current_sets = extract_counts(db, NAMED_SPECIES_SETS_SQL)
        with reference.connect() as db:
            reference_sets = extract_counts(db, NAMED_SPECIES_SETS_SQL)

        discrepancies = compare(current_sets, reference_sets)
        for discrepancy in discrepancies:
            context.report_problem(current.name, describe_species_set_discrepancy(discrepancy, reference.name))

        if not discrepancies:
            context.report_ok(
                current.name,
                f"All {len(reference_sets)} named species sets of {reference.name} are still present",
            )
        return not discrepancies

    def check_production_names(self, context: CheckContext, compara: RegistryEntry,
                               species_registry: DatabaseRegistry) -> bool:
        """genome_db names must match species.production_name in the core databases."""
        with compara.connect() as db:
            genome_db_names = db.column(DEFAULT_GENOME_DBS_SQL)

        result = True
        all_species_found = True
        for name in genome_db_names:
            check = self.resolver.verify_production_name(name, species_registry)
            if check.status == ProductionNameStatus.UNRESOLVED:
                context.report_problem(compara.name, f"No connection for {name}")
                all_species_found = False
            elif check.status == ProductionNameStatus.MISMATCH:
                context.report_problem(
                    compara.name,
                    f"The genome_db '{name}' has a different 'species.production_name' key: "
                    f"'{check.production_name}' (in {check.database})",
                )
                result = False

        if not all_species_found:
            context.report_problem(compara.name, "Cannot find all the species")
            result = False

        if result:
            context.report_ok(
                compara.name,
                f"PASSED genome_db and core databases share the same species names ({len(genome_db_names)} checked)",
            )
        return result

    def check_name_tag_for_multiple_alignments(self, context: CheckContext, compara: RegistryEntry) -> bool:
        """Every multiple alignment species set needs a 'name' tag."""
        with compara.connect() as db:
            return self._check_name_tags(context, compara, db)

    def _check_name_tags(self, context: CheckContext, compara: RegistryEntry, db: QueryExecutor) -> bool:
        if not db.table_has_rows("species_set_tag"):
            context.report_problem(
                compara.name,
                "species_set_tag table is empty. There will be no aliases for multiple alignments",
            )
            return False

        named_sets = extract_values(db, SPECIES_SET_NAMES_SQL)
        alignment_sets = extract_values(db, MULTIPLE_ALIGNMENT_SETS_SQL)

        missing = find_missing(named_sets, alignment_sets)
        for discrepancy in missing:
            context.report_problem(
                compara.name,
                f"There is no name entry in species_set_tag for MSA \"{discrepancy.reference_value}\".",
            )

        if not missing:
            context.report_ok(
                compara.name,
                f"All {len(alignment_sets)} multiple alignment species sets have a name tag",
            )
        return not missing


def describe_species_set_discrepancy(discrepancy: DiscrepancyRecord, reference_name: str) -> str:
    if discrepancy.kind == DiscrepancyKind.MISSING_IN_CURRENT:
        return (
            f"Species set \"{discrepancy.key}\" is missing "
            f"(it appears {discrepancy.reference_value} time(s) in {reference_name})"
        )
    return (
        f"Species set \"{discrepancy.key}\" is present only {discrepancy.current_value} times "
        f"instead of {discrepancy.reference_value} as in {reference_name}"
    )
