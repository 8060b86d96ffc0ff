"""
Centralized constants for sheetdex.

Defaults shared by settings, the ingestion pipeline and the query path.
"""

# ============================================================================
# Ingestion
# ============================================================================

DEFAULT_EXTENSIONS = (".xlsx", ".xlsm", ".xls")
"""Spreadsheet suffixes picked up by the directory scanner (case-insensitive)."""

DEFAULT_MAX_CONCURRENT_FILES = 4
"""Files imported concurrently per batch."""

EMPTY_HEADER_LABEL = "EMPTY"
"""Placeholder column name for a blank header cell."""

MAX_NUMERIC_TEXT_LEN = 15
"""Numeric-looking cell text longer than this stays a string (IDs, phone numbers)."""

HASH_CHUNK_BYTES = 1024 * 1024
"""Read size used while fingerprinting a file."""


# ============================================================================
# Search
# ============================================================================

DEFAULT_SEARCH_LIMIT = 20
"""Page size used when the caller does not pass a limit."""

MAX_SEARCH_LIMIT = 100
"""Upper bound for a single page of search results."""


# ============================================================================
# Export
# ============================================================================

SHEET_NAME_MAX_LEN = 31
SHEET_NAME_TRUNCATE_LEN = 28
SHEET_NAME_ELLIPSIS = "..."
SHEET_NAME_FALLBACK = "Sheet1"
SHEET_NAME_FORBIDDEN = frozenset("\\/?*[]:")

ROW_NUMBER_COLUMN = "Row Number"
IMPORT_TIME_COLUMN = "Import Time"
IMPORT_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

HEADER_FILL_COLOR = "4472C4"
HEADER_FONT_COLOR = "FFFFFF"


# ============================================================================
# Statistics
# ============================================================================

STATS_CACHE_TTL_SECONDS = 300
"""How long cached statistics stay valid (5 minutes)."""
