from __future__ import annotations

from collections.abc import Iterable, Sequence

from ..models.column_mapping import ColumnMapping, MappingError
from ..models.field_catalog import get_field

"""Column auto-mapping heuristics.

Each source column name is lower-cased and checked against an ordered rule
table of synonyms (Spanish and English). The first rule with a synonym that
appears anywhere in the name wins; columns matching no rule stay unmapped.
"""

__all__ = [
    "MAPPING_RULES",
    "guess_field",
    "auto_map",
    "remap",
    "can_validate",
]

# (synonyms, target field key) - order is significant
MAPPING_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("nombre", "name"), "name"),
    (("sku",), "sku"),
    (("precio", "price"), "price"),
    (("stock", "inventario"), "stock"),
    (("categoría", "category"), "category"),
    (("descripción", "description"), "description"),
)


def guess_field(column_name: str) -> str | None:
    """Best-guess target field key for a source column name."""
    lowered = column_name.lower()
    for synonyms, key in MAPPING_RULES:
        if any(s in lowered for s in synonyms):
            return key
    return None


def auto_map(header: Iterable[str]) -> list[ColumnMapping]:
    """One mapping per header column, using guess_field()."""
    return [ColumnMapping.for_field(col, guess_field(col)) for col in header]


def remap(
    mappings: Sequence[ColumnMapping], column: str | int, key: str | None
) -> list[ColumnMapping]:
    """Return a copy of ``mappings`` with one column bound to ``key``.

    ``column`` is either the source column name (first match) or its index.

    Raises:
        MappingError: Unknown column or unknown target field
    """
    if isinstance(column, int):
        if not 0 <= column < len(mappings):
            raise MappingError(f"column index out of range: {column}")
        index = column
    else:
        names = [m.source_column for m in mappings]
        if column not in names:
            raise MappingError(f"unknown source column: {column!r}")
        index = names.index(column)
    updated = list(mappings)
    updated[index] = ColumnMapping.for_field(mappings[index].source_column, key)
    return updated


def can_validate(mappings: Iterable[ColumnMapping]) -> bool:
    """True when at least one column targets a required catalog field."""
    for m in mappings:
        field = get_field(m.target_field)
        if field is not None and field.required:
            return True
    return False
