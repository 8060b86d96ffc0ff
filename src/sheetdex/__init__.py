"""sheetdex: spreadsheet folder ingestion with keyword search and export."""
from sheetdex.version import __version__

__all__ = ["__version__"]
