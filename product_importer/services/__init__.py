"""Import pipeline services: mapping, validation, processing, history and the wizard."""

from .history import ImportHistory
from .mapping import auto_map, can_validate, guess_field
from .processing import JobRunner, ProcessingTicker
from .template import render_template, write_template
from .validation import validate_table
from .wizard import ImportWizard, WizardStateError, WizardStep

__all__ = [
    "ImportHistory",
    "ImportWizard",
    "JobRunner",
    "ProcessingTicker",
    "WizardStateError",
    "WizardStep",
    "auto_map",
    "can_validate",
    "guess_field",
    "render_template",
    "validate_table",
    "write_template",
]
