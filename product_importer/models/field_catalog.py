from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

"""Target field catalog for product imports.

The catalog is the fixed schema every column mapping and validation rule is
checked against. Order matters: the CSV template lists required labels in
catalog order.
"""

__all__ = [
    "DataType",
    "TargetField",
    "PRODUCT_FIELDS",
    "get_field",
    "required_fields",
]


class DataType(Enum):
    """Declared data type of a target field.

    - TEXT: free text, never type-checked
    - NUMBER: non-negative numeric value
    - BOOLEAN: one of the accepted true/false tokens
    - URL: absolute URL (invalid values are only warnings)
    - EMAIL: accepted as-is
    """
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    URL = "url"
    EMAIL = "email"


@dataclass(frozen=True)
class TargetField:
    key: str
    label: str
    required: bool
    data_type: DataType


PRODUCT_FIELDS: tuple[TargetField, ...] = (
    TargetField("name", "Nombre del producto", True, DataType.TEXT),
    TargetField("sku", "SKU", True, DataType.TEXT),
    TargetField("description", "Descripción", False, DataType.TEXT),
    TargetField("price", "Precio", True, DataType.NUMBER),
    TargetField("compare_price", "Precio original", False, DataType.NUMBER),
    TargetField("cost", "Costo", False, DataType.NUMBER),
    TargetField("stock", "Stock", True, DataType.NUMBER),
    TargetField("category", "Categoría", False, DataType.TEXT),
    TargetField("brand", "Marca", False, DataType.TEXT),
    TargetField("weight", "Peso (kg)", False, DataType.NUMBER),
    TargetField("length", "Largo (cm)", False, DataType.NUMBER),
    TargetField("width", "Ancho (cm)", False, DataType.NUMBER),
    TargetField("height", "Alto (cm)", False, DataType.NUMBER),
    TargetField("image_url", "URL imagen principal", False, DataType.URL),
    TargetField("image_url_2", "URL imagen 2", False, DataType.URL),
    TargetField("image_url_3", "URL imagen 3", False, DataType.URL),
    TargetField("tags", "Etiquetas (separadas por coma)", False, DataType.TEXT),
    TargetField("active", "Activo (true/false)", False, DataType.BOOLEAN),
    TargetField("featured", "Destacado (true/false)", False, DataType.BOOLEAN),
    TargetField("seo_title", "Título SEO", False, DataType.TEXT),
    TargetField("seo_description", "Descripción SEO", False, DataType.TEXT),
)

_FIELDS_BY_KEY: dict[str, TargetField] = {f.key: f for f in PRODUCT_FIELDS}


def get_field(key: str | None) -> TargetField | None:
    """Look up a catalog entry by key (None / unknown -> None)."""
    if not key:
        return None
    return _FIELDS_BY_KEY.get(key)


def required_fields() -> list[TargetField]:
    return [f for f in PRODUCT_FIELDS if f.required]
