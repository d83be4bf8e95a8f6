"""Currency labels used in user-facing billing messages"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

DEFAULT_CURRENCY = "IDR"


def format_currency_label(amount: Decimal, currency: Optional[str]) -> str:
    """
    Human-readable amount

    AUD: "A$12.50". IDR (also the default when no currency is set) is
    rounded to whole rupiah with dot thousands separators: "Rp 100.000".
    Any other currency: "USD 12.50".
    """
    amount = Decimal(amount)
    currency = (currency or "").strip().upper() or DEFAULT_CURRENCY
    if currency == "AUD":
        return f"A${amount.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)}"
    if currency == "IDR":
        whole = int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
        return "Rp " + f"{whole:,}".replace(",", ".")
    return f"{currency} {amount.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)}"
