"""
Integer coercion for OCR offsets and page numbers.

OCR responses serialize 64-bit integers inconsistently: protobuf JSON emits
them as strings, Long.js style clients emit ``{"low": .., "high": ..}``
objects, and proto3 omits zero values entirely. Everything funnels through
``coerce_offset`` so slicing always works on plain ints.
"""
import logging
import operator
import re
from typing import Any, Mapping

logger = logging.getLogger(__name__)

# Leading base-10 integer, trailing junk ignored ("12px" -> 12)
_LEADING_INT = re.compile(r'^\s*([+-]?[0-9]+)')

_UINT32 = 0x100000000


def coerce_offset(value: Any) -> int:
    """
    Convert an offset-like value to a plain int.
    
    Resolution order:
        1. plain int: used as-is
        2. str: parsed as a base-10 integer
        3. object with an integer conversion (``__index__``/``__int__``,
           or a ``low``/``high`` wide-integer mapping): converted
        4. anything else, including None: 0
    
    Never raises.
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        if match:
            return int(match.group(1))
        logger.debug(f"Offset {value!r} is not numeric, defaulting to 0")
        return 0
    if value is None:
        return 0
    
    try:
        if isinstance(value, Mapping):
            return _from_low_high(value)
        if hasattr(value, '__index__'):
            return operator.index(value)
        if hasattr(value, '__int__'):
            return int(value)
    except (TypeError, ValueError, OverflowError) as e:
        logger.debug(f"Could not convert offset {value!r}: {e}")
    
    return 0


def _from_low_high(value: Mapping) -> int:
    """Assemble a 64-bit integer split into 32-bit ``low``/``high`` words."""
    if 'low' not in value or 'high' not in value:
        raise ValueError("missing low/high words")
    low = int(value['low']) % _UINT32
    high = int(value['high'])
    combined = (high << 32) | low
    if not value.get('unsigned') and combined >= 1 << 63:
        combined -= 1 << 64
    return combined
