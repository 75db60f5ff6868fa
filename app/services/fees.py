"""Fee and commission calculator.

Pure functions over Decimal. Every intermediate value is rounded half-up to
cents so repeated operations cannot drift.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum

from app.core.config import settings
from app.core.exceptions import InvalidFee, ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


class PaymentMethod(str, Enum):
    CARD = "card"
    WALLET = "wallet"
    EFT = "eft"
    PAY_ON_ARRIVAL = "pay_on_arrival"


ELECTRONIC_METHODS = frozenset({PaymentMethod.CARD, PaymentMethod.WALLET, PaymentMethod.EFT})


def to_decimal(value) -> Decimal:
    """Convert int/float/str/Decimal to Decimal without binary float artefacts."""
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise ValidationError(f"Not a monetary amount: {value!r}")
    if not result.is_finite():
        raise ValidationError(f"Not a monetary amount: {value!r}")
    return result


def round2(value) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def commission(cost, rate) -> Decimal:
    """Platform cut of a service price, e.g. commission(100, 0.15) == 15.00."""
    rate = to_decimal(rate)
    if rate < 0 or rate > 1:
        raise ValidationError(f"Commission rate must be between 0 and 1, got {rate}")
    return round2(round2(cost) * rate)


def cancellation_fee(requested_fee) -> Decimal:
    """Validate a provider-entered cancellation fee; it must be above zero."""
    try:
        fee = round2(requested_fee)
    except ValidationError:
        raise InvalidFee(f"Invalid cancellation fee: {requested_fee!r}")
    if fee <= 0:
        raise InvalidFee(f"Cancellation fee must be greater than zero, got {fee}")
    return fee


def processing_fee(amount, method: PaymentMethod, rate=None) -> Decimal:
    """Electronic payment surcharge; pay-on-arrival carries none."""
    method = PaymentMethod(method)
    if method not in ELECTRONIC_METHODS:
        return ZERO
    rate = to_decimal(settings.PROCESSING_FEE_RATE if rate is None else rate)
    return round2(round2(amount) * rate)


def payment_total(amount, method: PaymentMethod, rate=None) -> Decimal:
    return round2(amount) + processing_fee(amount, method, rate)
