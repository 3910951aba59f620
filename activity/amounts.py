"""Fixed-point amount conversion and display formatting"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

WEI_PER_CENT = 10 ** 16

def _to_decimal(raw: Any) -> Optional[Decimal]:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, Decimal):
        return raw
    text = str(raw).strip()
    if not text:
        return None
    try:
        if text.lower().startswith('0x'):
            return Decimal(int(text, 16))
        return Decimal(text)
    except (InvalidOperation, ValueError):
        return None

def _plain(value: Decimal) -> str:
    """Render without exponent and without trailing zeros"""
    if value == 0:
        return '0'
    text = format(value, 'f')
    if '.' in text:
        text = text.rstrip('0').rstrip('.')
    return text

def nqt_to_decimal(raw: Any, decimals: int = 8) -> str:
    """Convert a fixed-point integer amount to an exact decimal string

    >>> nqt_to_decimal(250000000)
    '2.5'
    """
    value = _to_decimal(raw)
    if value is None:
        return '0'
    return _plain(value.scaleb(-decimals))

def wei_to_decimal(raw: Any) -> str:
    """Convert a wei amount (decimal or 0x-hex) to ether, truncated to 2 places"""
    value = _to_decimal(raw)
    if value is None:
        return '0'
    cents = int(value) // WEI_PER_CENT
    return _plain(Decimal(cents) / 100)

def format_amount(amount: Any, decimals: int = 8) -> str:
    """Format a fixed-point amount for display

    The raw value is divided by ``10**decimals`` and rendered with ``,`` thousands
    grouping and at most ``decimals`` fractional digits, rounded half away from
    zero. Scientific notation with a negative exponent is taken as an already
    scaled value and rendered fixed-point.
    Empty or absent input renders as ``"0"``.
    """
    if not amount:
        return '0'
    text = str(amount).strip()
    if 'e-' in text.lower():
        value = _to_decimal(text)
        if value is None:
            return '0'
        return format(value, f'.{decimals}f')

    value = _to_decimal(text)
    if value is None:
        return '0'
    scaled = value.scaleb(-decimals)
    scaled = scaled.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP) if decimals > 0 else scaled
    whole = format(scaled, ',f')
    if '.' in whole:
        whole = whole.rstrip('0').rstrip('.')
    return whole or '0'

def format_wei(wei: Any) -> str:
    """Format a wei amount as ether truncated to cents, e.g. ``"1,000.50"``"""
    if not wei:
        return '0'
    value = _to_decimal(wei)
    if value is None:
        return '0'
    ether = Decimal(int(value) // WEI_PER_CENT) / 100
    return format(ether.quantize(Decimal('0.01')), ',f')
