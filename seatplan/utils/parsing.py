"""
Lenient text-to-number parsing for spreadsheet cells and prompt answers
"""

import re
from typing import Any, Optional

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

def parse_leading_int(value: Any) -> Optional[int]:
    """Integer formed by the leading digits of a value ("3 guests" -> 3), else None"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    match = _LEADING_INT.match(str(value))
    if not match:
        return None
    return int(match.group(1))
