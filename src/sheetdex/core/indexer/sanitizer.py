import unicodedata
from decimal import Decimal
from typing import Iterable, List, Tuple

from ..models import CellValue, RowData

# NUL, BOM and the zero-width space / non-joiner / joiner.
_INVISIBLE = dict.fromkeys(map(ord, "\x00\ufeff\u200b\u200c\u200d"))


def clean_text(text: str) -> str:
    """Strip invisible and control characters, then surrounding whitespace."""
    text = text.translate(_INVISIBLE)
    text = "".join(
        ch for ch in text
        if ch.isspace() or unicodedata.category(ch) != "Cc"
    )
    return text.strip()


def sanitize_row(row: RowData) -> RowData:
    cleaned: RowData = {}
    for key, value in row.items():
        new_key = clean_text(str(key))
        if not new_key:
            continue
        if isinstance(value, str):
            value = clean_text(value)
        cleaned[new_key] = value
    return cleaned


def plain_float_text(value: float) -> str:
    """Shortest round-trip digits of ``value``, never in exponent notation."""
    return format(Decimal(repr(value)), "f")


def value_to_text(value: CellValue) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if value.is_integer() and abs(value) >= 1e15:
            return f"{value:.0f}"
        return plain_float_text(value)
    return str(value)


def build_search_text(values: Iterable[CellValue]) -> str:
    return " ".join(value_to_text(v) for v in values if v is not None)


def find_suspicious_fields(row: RowData) -> List[Tuple[str, str]]:
    """Fields holding a literal ``\\u`` escape or a NUL, reported on insert failures."""
    return [
        (key, value) for key, value in row.items()
        if isinstance(value, str) and ("\\u" in value or "\x00" in value)
    ]
