from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Context, Decimal
from typing import Any

# Enough digits for any finite float plus the rounding places
_WIDE = Context(prec=400)


def round_half_up(value: float, places: int) -> float:
    """Round on the decimal representation, so 2.005 -> 2.01 rather than 2.0."""
    if not math.isfinite(value):
        raise ValueError(f"Cannot round non-finite value {value!r}")
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP, context=_WIDE))


def is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)
