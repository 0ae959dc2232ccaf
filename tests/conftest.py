# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path

import pandas as pd
import pytest

from product_importer.logging.init import reset_logging

DEMO_ROWS = [
    ["Nombre", "SKU", "Precio", "Stock", "Categoría", "Descripción"],
    ["Smartphone Galaxy", "SGX-001", "799.99", "25", "Electrónicos", "Smartphone con cámara triple"],
    ["Auriculares Bluetooth", "ABT-002", "199.99", "50", "Electrónicos", "Auriculares inalámbricos"],
    ["Camiseta Vintage", "CVT-003", "29.99", "100", "Moda", "Camiseta de algodón vintage"],
    ["", "ERR-004", "precio_invalido", "-5", "Categoría inexistente", "Producto con errores"],
]


def _write_csv(path: Path, rows: list[list[str]], sep: str = ",") -> Path:
    text = "\n".join(sep.join(r) for r in rows) + "\n"
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _fresh_logging():
    # setup_logging() のハンドラが前テストの stdout を掴まないように
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("PRODUCT_IMPORTER_CONFIG", raising=False)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """max_file_size_mb: 20
output_directory: ./output
logs_directory: ./logs
template_filename: plantilla_productos.csv
processing:
  mode: batch
  interval_seconds: 0.01
  batch_size: 2
history:
  path: ./output/history.jsonl
  seed_demo: false
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def demo_rows() -> list[list[str]]:
    return [list(r) for r in DEMO_ROWS]


@pytest.fixture()
def demo_csv(temp_workdir: Path) -> Path:
    """Six demo columns, three valid rows and one broken row."""
    return _write_csv(temp_workdir / "data" / "productos.csv", DEMO_ROWS)


@pytest.fixture()
def valid_csv(temp_workdir: Path) -> Path:
    """Six demo columns, valid rows only."""
    return _write_csv(temp_workdir / "data" / "productos_ok.csv", DEMO_ROWS[:4])


@pytest.fixture()
def write_csv(temp_workdir: Path):
    def _make(name: str, rows: list[list[str]], sep: str = ",") -> Path:
        return _write_csv(temp_workdir / "data" / name, rows, sep)
    return _make


@pytest.fixture()
def write_xlsx(temp_workdir: Path):
    def _make(name: str, rows: list[list[object]]) -> Path:
        p = temp_workdir / "data" / name
        with pd.ExcelWriter(p, engine="openpyxl") as writer:
            pd.DataFrame(rows).to_excel(writer, sheet_name="Productos", header=False, index=False)
        return p
    return _make
