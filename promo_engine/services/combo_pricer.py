
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List

from promo_engine.services.domain import CartLine, CatalogLookup, ComboDefinition
from promo_engine.services.money import CENT, D, ZERO, floor2, round2

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MissingCatalogItem:
    """A combo line whose item is no longer in the catalog. Reported, not fatal."""
    item_id: int


@dataclass(frozen=True)
class ComboLinePrice:
    item_id: int
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    allocated_discount: Decimal

    @property
    def discounted_total(self) -> Decimal:
        return self.line_total - self.allocated_discount


@dataclass(frozen=True)
class ComboPricingResult:
    lines: List[ComboLinePrice]
    bundle_subtotal: Decimal
    bundle_discount: Decimal
    bundle_discounted_total: Decimal
    warnings: List[MissingCatalogItem] = field(default_factory=list)

    @property
    def is_partial(self) -> bool:
        return bool(self.warnings)


def allocate_bundle_discount(line_totals: List[Decimal], bundle_discount: Decimal) -> List[Decimal]:
    """
    Split a bundle discount across lines in proportion to their totals.

    Each share is rounded to cents and the rounding remainder goes to the
    highest-value line (first one on ties), so the shares always add up to the
    rounded bundle discount.
    """
    if not line_totals:
        return []
    subtotal = sum(line_totals, ZERO)
    if subtotal <= ZERO:
        return [ZERO for _ in line_totals]

    target = round2(bundle_discount)
    shares = [round2(D(bundle_discount) * lt / subtotal) for lt in line_totals]
    remainder = target - sum(shares, ZERO)
    if remainder:
        top = max(range(len(line_totals)), key=lambda i: line_totals[i])
        shares[top] += remainder
    return shares


def price_combo(combo: ComboDefinition, catalog_lookup: CatalogLookup) -> ComboPricingResult:
    priced = []
    warnings: List[MissingCatalogItem] = []
    for line in combo.lines:
        item = catalog_lookup(line.item_id)
        if item is None:
            logger.warning("Combo %s references missing catalog item %s; excluding it", combo.id, line.item_id)
            warnings.append(MissingCatalogItem(line.item_id))
            continue
        unit_price = D(item.base_price)
        priced.append((line, unit_price, unit_price * line.quantity))

    bundle_subtotal = sum((total for _, _, total in priced), ZERO)
    bundle_discount = combo.discount_rule.apply(bundle_subtotal)
    allocations = allocate_bundle_discount([total for _, _, total in priced], bundle_discount)

    lines = [
        ComboLinePrice(
            item_id=line.item_id,
            quantity=line.quantity,
            unit_price=unit_price,
            line_total=total,
            allocated_discount=allocated,
        )
        for (line, unit_price, total), allocated in zip(priced, allocations)
    ]
    logger.debug(
        "Combo %s priced: subtotal=%s discount=%s (%d lines, %d missing)",
        combo.id, bundle_subtotal, bundle_discount, len(lines), len(warnings),
    )
    return ComboPricingResult(
        lines=lines,
        bundle_subtotal=bundle_subtotal,
        bundle_discount=bundle_discount,
        bundle_discounted_total=bundle_subtotal - bundle_discount,
        warnings=warnings,
    )


def split_into_units(total: Decimal, quantity: int) -> List[Decimal]:
    """Split a line total into ``quantity`` cent-exact unit prices that sum to it."""
    if quantity <= 0:
        return []
    total = round2(total)
    base = floor2(total / quantity)
    extra_cents = int((total - base * quantity) / CENT)
    return [base + CENT if i < extra_cents else base for i in range(quantity)]


def add_combo_to_cart(combo: ComboDefinition, catalog_lookup: CatalogLookup) -> List[CartLine]:
    """
    Expand a combo into single-unit cart lines with the bundle price frozen in.

    One line per unit keeps increment/decrement/remove uniform with ordinary
    lines. The item-level sale does not stack on top of the bundle price.
    """
    pricing = price_combo(combo, catalog_lookup)
    frozen_subtotal = round2(pricing.bundle_subtotal)
    frozen_discounted_total = frozen_subtotal - round2(pricing.bundle_discount)

    cart_lines: List[CartLine] = []
    for priced in pricing.lines:
        for unit_price in split_into_units(priced.discounted_total, priced.quantity):
            cart_lines.append(CartLine(
                item_id=priced.item_id,
                quantity=1,
                unit_base_price=unit_price,
                sale_percentage=ZERO,
                origin_combo_id=combo.id,
                bundle_subtotal_at_add_time=frozen_subtotal,
                bundle_discounted_total_at_add_time=frozen_discounted_total,
                original_unit_price=priced.unit_price,
            ))
    logger.info("Expanded combo %s into %d cart lines", combo.id, len(cart_lines))
    return cart_lines
