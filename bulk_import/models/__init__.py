"""Domain models for the bulk spreadsheet import pipeline."""

from .column_mapping import IGNORE, ColumnMapping, Confidence, MappingWarning
from .error_record import ErrorRecord
from .field_spec import FieldSpec, FieldType, ValidationOutcome
from .import_result import ImportResult, RowError
from .parsed_row import ParsedRow
from .raw_table import RawTable
from .wizard_session import WizardSession, WizardStep

__all__ = [
    # Catalog models
    "FieldSpec",
    "FieldType",
    "ValidationOutcome",
    # Pipeline models
    "RawTable",
    "ColumnMapping",
    "Confidence",
    "IGNORE",
    "MappingWarning",
    "ParsedRow",
    "ImportResult",
    "RowError",
    "ErrorRecord",
    # Session
    "WizardSession",
    "WizardStep",
]
