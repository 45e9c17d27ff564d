"""Client-side shopping cart."""

from dataclasses import dataclass, field, replace
from decimal import Decimal

from campus_hub.domain.orders import CartLine, VendorGroup


@dataclass
class Cart:
    """Holds cart lines for the duration of a shopping session."""

    _lines: dict[str, CartLine] = field(default_factory=dict, init=False)

    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines.values())

    @property
    def is_empty(self) -> bool:
        return not self._lines

    @property
    def subtotal(self) -> Decimal:
        return sum((line.line_total for line in self._lines.values()), Decimal("0"))

    def add(self, line: CartLine) -> None:
        """Add a line, merging quantities for a product already in the cart."""
        if line.quantity <= 0:
            raise ValueError("quantity must be > 0")
        existing = self._lines.get(line.product_id)
        if existing is not None:
            line = replace(existing, quantity=existing.quantity + line.quantity)
        self._lines[line.product_id] = line

    def set_quantity(self, product_id: str, quantity: int) -> None:
        """Change a line's quantity; zero or less removes it."""
        if quantity <= 0:
            self._lines.pop(product_id, None)
            return
        existing = self._lines.get(product_id)
        if existing is None:
            raise KeyError(product_id)
        self._lines[product_id] = replace(existing, quantity=quantity)

    def remove_vendor(self, vendor_id: str) -> None:
        """Drop every line belonging to one vendor."""
        self._lines = {
            product_id: line
            for product_id, line in self._lines.items()
            if line.vendor_id != vendor_id
        }

    def clear(self) -> None:
        self._lines.clear()

    def vendor_groups(self) -> list[VendorGroup]:
        """Partition lines by vendor, keeping first-appearance order."""
        grouped: dict[str, list[CartLine]] = {}
        for line in self._lines.values():
            grouped.setdefault(line.vendor_id, []).append(line)
        return [
            VendorGroup(vendor_id=vendor_id, lines=tuple(lines))
            for vendor_id, lines in grouped.items()
        ]
