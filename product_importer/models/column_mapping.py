from __future__ import annotations

from dataclasses import dataclass

from .field_catalog import DataType, get_field

"""ColumnMapping model: binds one source column to one target field.

There is one mapping per source column. The required flag and data type are
always derived from the target field in the catalog, so a hand-edited mapping
can never disagree with the schema.
"""

__all__ = [
    "ColumnMapping",
    "MappingError",
]


class MappingError(Exception):
    """Raised when a mapping refers to an unknown target field or column."""


@dataclass(frozen=True)
class ColumnMapping:
    source_column: str
    target_field: str | None = None  # None = unmapped
    required: bool = False
    data_type: DataType = DataType.TEXT

    @property
    def is_mapped(self) -> bool:
        return bool(self.target_field)

    @staticmethod
    def for_field(source_column: str, key: str | None) -> ColumnMapping:
        """Create a mapping whose flags come from the catalog entry for ``key``.

        An empty/None key produces an unmapped column (text, not required).

        Raises:
            MappingError: If ``key`` is not a catalog field
        """
        if not key:
            return ColumnMapping(source_column=source_column)
        field = get_field(key)
        if field is None:
            raise MappingError(f"unknown target field: {key!r}")
        return ColumnMapping(
            source_column=source_column,
            target_field=field.key,
            required=field.required,
            data_type=field.data_type,
        )
