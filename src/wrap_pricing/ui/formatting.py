"""Display helpers. Rounding happens here, never in the engine."""
from typing import Optional

from ..engine.models import FIXED_AMOUNT, PriceBreakdown

PLACEHOLDER = "—"


def format_price(amount: float, currency: str = "RON", decimals: int = 2) -> str:
    return f"{amount:,.{decimals}f} {currency}"


def format_total(breakdown: Optional[PriceBreakdown], currency: str = "RON", decimals: int = 2) -> str:
    """Total for display, or a neutral placeholder while the selection is incomplete."""
    if breakdown is None:
        return PLACEHOLDER
    return format_price(breakdown.total, currency, decimals)


def describe_pricing(calculation_mode: str, value: float, currency: str = "RON") -> str:
    """'+25%' or '+45.00 RON' for material pickers."""
    if calculation_mode == FIXED_AMOUNT:
        return f"+{format_price(value, currency)}"
    return f"+{value:g}%"
