from decimal import Decimal, InvalidOperation
from rest_framework import serializers

TWO_PLACES = Decimal('0.01')
MAX_AMOUNT = Decimal('9999999999.99')


def validate_positive_amount(value, field_name: str = 'amount') -> Decimal:
    """
    Parse a currency amount given as int, float or numeric string.

    Floats go through their shortest repr so 2000.1 becomes Decimal('2000.10')
    rather than the binary expansion. Amounts with more than two decimal
    places are rejected instead of rounded.
    """
    if isinstance(value, bool) or value is None:
        raise serializers.ValidationError({field_name: "Invalid decimal value"})

    try:
        if isinstance(value, float):
            decimal_value = Decimal(repr(value))
        else:
            decimal_value = Decimal(str(value).strip())
    except (InvalidOperation, TypeError, ValueError):
        raise serializers.ValidationError({field_name: "Invalid decimal value"})

    if not decimal_value.is_finite():
        raise serializers.ValidationError({field_name: "Invalid decimal value"})

    if decimal_value <= 0:
        raise serializers.ValidationError({field_name: f"{field_name} must be greater than zero"})

    if decimal_value > MAX_AMOUNT:
        raise serializers.ValidationError({field_name: f"{field_name} is too large"})

    if decimal_value != decimal_value.quantize(TWO_PLACES):
        raise serializers.ValidationError({field_name: f"{field_name} cannot have more than two decimal places"})

    return decimal_value.quantize(TWO_PLACES)
