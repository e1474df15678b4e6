"""Integer money helpers.

All charge amounts are int kobo (minor currency units) and all wallet
balances are int Knowledge Units. No float, no Decimal.
"""


def kobo_to_display(kobo: int) -> str:
    """Convert kobo to a naira display string: 50000 -> '₦500.00', -1250 -> '-₦12.50'."""
    if kobo < 0:
        abs_kobo = -kobo
        return f"-₦{abs_kobo // 100:,}.{abs_kobo % 100:02d}"
    return f"₦{kobo // 100:,}.{kobo % 100:02d}"


def units_to_display(units: int) -> str:
    """10 -> '10 KU', -1 -> '-1 KU'."""
    return f"{units:,} KU"
