"""
Numeric helpers for aggregate rows.

Drivers hand counts back as int, Decimal, float or text depending on the
dialect (PostgreSQL COUNT is bigint, ROUND is numeric; some drivers
stringify both). Everything crossing into the core goes through
parse_count so that a drifted schema fails loudly instead of reading as 0.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from learnhub.exceptions import MalformedAggregateRowError


def parse_count(value: Any, field: str) -> int:
    """
    Parse a non-negative integer count from a storage value.
    
    Accepts ints, integral Decimals/floats and integer-valued text
    ("7", "7.0", " 7 "). Raises MalformedAggregateRowError otherwise.
    """
    if value is None or isinstance(value, bool):
        raise MalformedAggregateRowError(
            f"Aggregate field '{field}' is missing or not numeric: {value!r}",
            field=field,
            value=value
        )
    
    if isinstance(value, int):
        number = value
    else:
        try:
            decimal_value = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise MalformedAggregateRowError(
                f"Aggregate field '{field}' is not numeric: {value!r}",
                field=field,
                value=value
            )
        if not decimal_value.is_finite() or decimal_value != decimal_value.to_integral_value():
            raise MalformedAggregateRowError(
                f"Aggregate field '{field}' is not an integer: {value!r}",
                field=field,
                value=value
            )
        number = int(decimal_value)
    
    if number < 0:
        raise MalformedAggregateRowError(
            f"Aggregate field '{field}' is negative: {value!r}",
            field=field,
            value=value
        )
    return number


def completion_percentage(completed: int, total: int) -> int:
    """
    Whole-number completion percentage, 0 when there is nothing to complete.
    
    Rounds half up like SQL ROUND on positive values and clamps to 0..100.
    """
    if total <= 0:
        return 0
    
    ratio = (Decimal(completed) * 100) / Decimal(total)
    percentage = int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return max(0, min(percentage, 100))
