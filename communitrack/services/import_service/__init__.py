"""Import service package for parsing spreadsheets and creating entries."""

from .categories import map_category
from .constants import (
    ALLOWED_EXTENSIONS,
    CATEGORY_SYNONYMS,
    FIELD_ALIASES,
    FILE_ERROR_MESSAGE,
    MAX_ROWS,
    TRUTHY_VALUES,
)
from .converters import candidate_to_entry_data, row_to_entry_candidate
from .dates import is_ambiguous_date, normalize_date
from .mapping import map_row, resolve_field
from .parsers import parse_csv, parse_xls, parse_xlsx
from .processor import (
    ImportStateError,
    build_preview,
    commit_preview,
    get_file_extension,
    parse_file,
    store_preview,
)
from .template import TEMPLATE_FILENAME, build_import_template
from .validation import validate_row, validate_rows

__all__ = [
    # Constants
    "ALLOWED_EXTENSIONS",
    "CATEGORY_SYNONYMS",
    "FIELD_ALIASES",
    "FILE_ERROR_MESSAGE",
    "MAX_ROWS",
    "TEMPLATE_FILENAME",
    "TRUTHY_VALUES",
    # Dates and categories
    "normalize_date",
    "is_ambiguous_date",
    "map_category",
    # Mapping
    "resolve_field",
    "map_row",
    # Validation
    "validate_row",
    "validate_rows",
    # Converters
    "row_to_entry_candidate",
    "candidate_to_entry_data",
    # Parsers
    "parse_csv",
    "parse_xlsx",
    "parse_xls",
    # Processor
    "ImportStateError",
    "build_preview",
    "commit_preview",
    "get_file_extension",
    "parse_file",
    "store_preview",
    # Template
    "build_import_template",
]
