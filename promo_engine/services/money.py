
from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP, getcontext

getcontext().prec = 28

Money = Decimal

CENT = Decimal('0.01')
ZERO = Decimal('0')


def D(x) -> Money:
    if isinstance(x, Decimal):
        return x
    if x is None:
        return ZERO
    return Decimal(str(x))


def round2(x) -> Money:
    return D(x).quantize(CENT, rounding=ROUND_HALF_UP)


def floor2(x) -> Money:
    return D(x).quantize(CENT, rounding=ROUND_DOWN)


def money_str(x) -> str:
    """Serialize an amount as a 2-decimal string, the form money takes on the wire."""
    return str(round2(x))


def to_minor_units(x) -> int:
    """Convert an amount to integer minor units (paise/cents) for the payment step."""
    return int(round2(x) * 100)
