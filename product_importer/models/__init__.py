"""Domain models for the product CSV/XLSX importer.

This package contains the data model shared by the reader, the validation and
processing services and the wizard.
"""

from .column_mapping import ColumnMapping, MappingError
from .field_catalog import PRODUCT_FIELDS, DataType, TargetField, get_field, required_fields
from .import_job import ImportJob, JobStatus, create_job
from .parsed_table import ParsedTable
from .source_file import SourceFile
from .validation_issue import Severity, ValidationIssue

__all__ = [
    # Catalog
    "DataType",
    "TargetField",
    "PRODUCT_FIELDS",
    "get_field",
    "required_fields",
    # Pipeline data
    "SourceFile",
    "ParsedTable",
    "ColumnMapping",
    "MappingError",
    "Severity",
    "ValidationIssue",
    # Jobs
    "JobStatus",
    "ImportJob",
    "create_job",
]
