"""Server-side price table.

The only place unit counts and charge amounts come from. A client may name a
package or a custom unit count, never an amount.
"""

from dataclasses import dataclass

from src.ku_common.errors import InvalidPackageError

PRICE_PER_UNIT_KOBO = 5_000  # ₦50
MAX_CUSTOM_UNITS = 10_000


@dataclass(frozen=True)
class KuPackage:
    id: str
    name: str
    units: int
    amount: int  # kobo


KU_PACKAGES: dict[str, KuPackage] = {
    p.id: p
    for p in (
        KuPackage("starter", "Starter", 10, 50_000),
        KuPackage("standard", "Standard", 25, 125_000),
        KuPackage("bulk", "Bulk", 50, 250_000),
        KuPackage("mega", "Mega", 100, 500_000),
    )
}


@dataclass(frozen=True)
class Quote:
    units: int
    amount: int              # kobo
    package_id: str | None

    @property
    def label(self) -> str:
        """'starter' for a package, 'custom_37' for a custom amount."""
        return self.package_id or f"custom_{self.units}"


def quote(package_id: str | None, custom_units: int | None) -> Quote:
    """Price a purchase. Custom units win when both are given, as the widget does."""
    if custom_units is not None:
        if not (1 <= custom_units <= MAX_CUSTOM_UNITS):
            raise InvalidPackageError(
                f"Custom purchases must be between 1 and {MAX_CUSTOM_UNITS} units"
            )
        return Quote(custom_units, custom_units * PRICE_PER_UNIT_KOBO, None)
    if package_id is not None and package_id in KU_PACKAGES:
        pkg = KU_PACKAGES[package_id]
        return Quote(pkg.units, pkg.amount, pkg.id)
    raise InvalidPackageError()
