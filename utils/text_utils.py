"""
Text utilities for spreadsheet cell values and record fields.
"""

import math
import re
from typing import Any, Iterable, Optional


def clean_cell_text(value: Any) -> Optional[str]:
    """
    Convert a raw cell value to trimmed text.

    - None / NaN / whitespace-only -> None
    - 123.0 -> "123" (Excel stores whole numbers as floats)
    - "  ABC  " -> "ABC"

    Args:
        value: Raw cell value from the spreadsheet reader

    Returns:
        Trimmed string, or None if the cell is empty
    """
    if value is None:
        return None

    if isinstance(value, float):
        if math.isnan(value):
            return None
        if value.is_integer():
            value = int(value)

    text = str(value).strip()

    if not text or text.lower() == "nan":
        return None

    return text


def contains_any(text: str, needles: Iterable[str]) -> bool:
    """Case-insensitive substring check against several needles."""
    lowered = text.lower()
    return any(needle.lower() in lowered for needle in needles)


def contains_word(text: str, word: str) -> bool:
    """
    Case-insensitive whole-word check.

    "Dry Red Chillies" contains "chillies"; "Unit Price" does not contain "rice".
    """
    return re.search(rf"\b{re.escape(word)}\b", text, flags=re.IGNORECASE) is not None


def unique_sorted(values: Iterable[Optional[str]]) -> list[str]:
    """Distinct non-blank values, sorted case-insensitively."""
    seen = {v.strip() for v in values if v and v.strip()}
    return sorted(seen, key=lambda v: (v.lower(), v))
