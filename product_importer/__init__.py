"""Product CSV/XLSX importer.

File intake, column auto-mapping, per-cell validation, job processing with
progress, and an import history, driven through ``ImportWizard`` or the
``product-importer`` CLI.
"""

__version__ = "0.1.0"
