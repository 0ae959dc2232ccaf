from __future__ import annotations

from pathlib import Path

from ..models.field_catalog import required_fields

"""CSV template generation.

The template holds the labels of the required catalog fields (catalog order)
followed by two example rows. It does not depend on any uploaded file.
"""

DEFAULT_TEMPLATE_FILENAME = "plantilla_productos.csv"

EXAMPLE_ROWS = (
    "Smartphone Galaxy Pro,SGP-001,799.99,25",
    "Auriculares Bluetooth,ABT-002,199.99,50",
)


def render_template() -> str:
    headers = [f.label for f in required_fields()]
    return ",".join(headers) + "\n" + "\n".join(EXAMPLE_ROWS)


def write_template(directory: Path, filename: str = DEFAULT_TEMPLATE_FILENAME) -> Path:
    """Write the template into ``directory`` and return the file path."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    target = directory / filename
    target.write_text(render_template(), encoding="utf-8")
    return target
