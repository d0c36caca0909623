"""
Species name normalization and aliases.

Names arrive in many shapes: "Homo sapiens" in a compara genome_db row,
"homo_sapiens" in a core database name, "human" from a person at a terminal.
resolve_alias() turns all of them into the canonical production-style name.

The function is total and idempotent:
    resolve_alias(resolve_alias(x)) == resolve_alias(x)
"""

import re
from typing import Dict, Iterable, Mapping, Optional

_WHITESPACE = re.compile(r"\s+")
SEPARATOR = "_"


def normalize_name(name: str) -> str:
    """Lower-case, trim and replace internal whitespace runs with '_'."""
    return _WHITESPACE.sub(SEPARATOR, name.strip().lower())


# canonical name -> historical / alternate names
DEFAULT_SPECIES_ALIASES: Dict[str, tuple] = {
    "homo_sapiens": ("human", "hsap", "hsapiens", "h_sapiens", "man"),
    "mus_musculus": ("mouse", "mmus", "mmusculus", "m_musculus"),
    "rattus_norvegicus": ("rat", "rnor", "rnorvegicus"),
    "danio_rerio": ("zebrafish", "drer", "zfish"),
    "gallus_gallus": ("chicken", "ggal"),
    "canis_familiaris": ("dog", "cfam", "canis_lupus_familiaris"),
    "bos_taurus": ("cow", "btau", "cattle"),
    "sus_scrofa": ("pig", "sscr"),
    "pan_troglodytes": ("chimp", "chimpanzee", "ptro"),
    "drosophila_melanogaster": ("fly", "fruitfly", "dmel"),
    "caenorhabditis_elegans": ("worm", "celegans", "c_elegans"),
    "saccharomyces_cerevisiae": ("yeast", "scer"),
}


class SpeciesAliasTable:
    """
    Many-to-one mapping of alternate species names onto canonical names.

    Raises ValueError at construction if an alias collides with a different
    canonical name, since that would make resolution order-dependent.
    """

    def __init__(self, aliases: Optional[Mapping[str, Iterable[str]]] = None):
        self._lookup: Dict[str, str] = {}
        canonical_names = set()
        for canonical, alternates in (aliases if aliases is not None else DEFAULT_SPECIES_ALIASES).items():
            canonical = normalize_name(canonical)
            canonical_names.add(canonical)
            for alternate in alternates:
                self._add(normalize_name(alternate), canonical)

        clashes = canonical_names & {k for k, v in self._lookup.items() if k != v}
        if clashes:
            raise ValueError(f"Canonical species names used as aliases: {sorted(clashes)}")

    def _add(self, alias: str, canonical: str) -> None:
        existing = self._lookup.get(alias)
        if existing is not None and existing != canonical:
            raise ValueError(f"Alias '{alias}' maps to both '{existing}' and '{canonical}'")
        self._lookup[alias] = canonical

    def resolve(self, name: str) -> str:
        normalized = normalize_name(name)
        return self._lookup.get(normalized, normalized)


default_alias_table = SpeciesAliasTable()


def resolve_alias(name: str) -> str:
    """Normalize a species name and map known aliases to the canonical name."""
    return default_alias_table.resolve(name)
