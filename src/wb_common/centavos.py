"""Integer arithmetic utilities for centavo-denominated amounts.

All prices, amounts, and balances use int (centavos, ₱1.00 = 100). No float, no Decimal.
"""

# Largest amount a BIGINT column can hold
MAX_CENTAVOS = 2**63 - 1


def is_valid_amount(value: object) -> bool:
    """True for an int (not bool) in 1..MAX_CENTAVOS."""
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and 0 < value <= MAX_CENTAVOS
    )


def centavos_to_display(centavos: int) -> str:
    """Convert centavos to display string: 5000000 -> '₱50,000.00', -1200 -> '-₱12.00'."""
    if centavos < 0:
        abs_centavos = -centavos
        return f"-₱{abs_centavos // 100:,}.{abs_centavos % 100:02d}"
    return f"₱{centavos // 100:,}.{centavos % 100:02d}"


def percentage_of(part: int, whole: int) -> int:
    """Integer percentage with half-up rounding: round(part * 100 / whole).

    Returns 0 when whole is 0.
    Using integer rounding: (2 * part * 100 + whole) // (2 * whole)
    """
    if whole <= 0:
        return 0
    return (2 * part * 100 + whole) // (2 * whole)
