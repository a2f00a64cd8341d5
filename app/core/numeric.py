from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from app.core.errors import ValidationError

PRECISION = 10  # total digits of the NUMERIC columns

def to_fixed(value, places: int, field: str) -> Decimal:
    """Round to a fixed number of decimal places, as the NUMERIC(10, places) columns store it."""
    try:
        d = value if isinstance(value, Decimal) else Decimal(str(value))
        if not d.is_finite():
            raise InvalidOperation
        d = d.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"{field} must be a finite number", field=field)
    if abs(d) >= Decimal(10) ** (PRECISION - places):
        raise ValidationError(f"{field} is out of range", field=field)
    return d
