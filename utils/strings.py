"""String processing utilities for the budget mind map tools.

Optimization: coerce_number() runs once per node during sanitization, so the
patterns it relies on are pre-compiled in utils.patterns.
"""

import math

from utils.patterns import CURRENCY_SYMBOLS


def coerce_number(val) -> float | None:
    """Coerce a raw dataset value to a finite float, or None.

    Handles:
    - None, empty or whitespace-only strings -> None
    - int / float -> float, provided the result is finite
    - Strings with currency symbols, surrounding whitespace, commas
    - bool, NaN, +/-inf, unparsable text and any other type -> None

    Args:
        val: Value to convert (any type)

    Returns:
        float or None
    """
    if val is None or isinstance(val, bool):
        return None
    if isinstance(val, (int, float)):
        try:
            f = float(val)
        except OverflowError:
            return None
        return f if math.isfinite(f) else None
    if not isinstance(val, str):
        return None

    s = CURRENCY_SYMBOLS.sub("", val)
    s = s.replace(",", "").strip()
    if not s:
        return None
    try:
        f = float(s)
    except ValueError:
        return None
    return f if math.isfinite(f) else None

