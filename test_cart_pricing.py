from dataclasses import replace
from datetime import datetime
from decimal import Decimal

import pytest

from promo_engine.errors import EmptyCartError, PricingInvariantError
from promo_engine.services.cart_pricing import (
    AppliedCoupon, DeliveryRule, apply_coupon, cart_fingerprint, compute_order_totals, remove_combo_lines,
)
from promo_engine.services.combo_pricer import add_combo_to_cart
from promo_engine.services.coupon_validator import CouponReason
from promo_engine.services.discount_rule import PercentageDiscount
from promo_engine.services.domain import CartLine, CatalogItem, ComboDefinition, ComboLine, CouponDefinition

NOW = datetime(2024, 1, 15, 12, 0)
DELIVERY = DeliveryRule(free_delivery_threshold=Decimal("999.00"), flat_fee=Decimal("99.00"))

SAVE10 = CouponDefinition(
    code="SAVE10",
    discount_rule=PercentageDiscount(Decimal("10")),
    min_purchase_amount=Decimal("999"),
)


def line(item_id, price, quantity=1, **kwargs):
    return CartLine(item_id=item_id, quantity=quantity, unit_base_price=Decimal(price), **kwargs)


def test_empty_cart_is_an_error():
    with pytest.raises(EmptyCartError):
        compute_order_totals([], delivery_rule=DELIVERY)


def test_cart_with_nothing_selected_is_an_error():
    with pytest.raises(EmptyCartError):
        compute_order_totals([line(1, "100", selected=False)], delivery_rule=DELIVERY)


def test_sale_percentage_is_applied_per_unit():
    totals = compute_order_totals([line(1, "200", 3, sale_percentage=Decimal("10"))], delivery_rule=DELIVERY)

    assert totals.subtotal == Decimal("540.00")
    assert totals.coupon_discount == Decimal("0")
    assert totals.delivery_charge == Decimal("99.00")
    assert totals.grand_total == Decimal("639.00")
    assert totals.lines[0].unit_price == Decimal("180.00")


def test_delivery_threshold_boundary():
    at_threshold = compute_order_totals([line(1, "999.00")], delivery_rule=DELIVERY)
    assert at_threshold.delivery_charge == Decimal("99.00")
    assert at_threshold.grand_total == Decimal("1098.00")
    assert at_threshold.grand_total_minor == 109800

    above = compute_order_totals([line(1, "999.01")], delivery_rule=DELIVERY)
    assert above.delivery_charge == Decimal("0")
    assert above.grand_total == Decimal("999.01")


def test_custom_delivery_rule():
    rule = DeliveryRule(free_delivery_threshold=Decimal("500"), flat_fee=Decimal("40"))
    assert compute_order_totals([line(1, "450")], delivery_rule=rule).delivery_charge == Decimal("40")
    assert compute_order_totals([line(1, "501")], delivery_rule=rule).delivery_charge == Decimal("0")


def test_only_selected_lines_count():
    totals = compute_order_totals([line(1, "100"), line(2, "5000", selected=False)], delivery_rule=DELIVERY)
    assert totals.subtotal == Decimal("100.00")
    assert [priced.item_id for priced in totals.lines] == [1]


def test_combo_lines_use_frozen_prices():
    catalog = {
        1: CatalogItem(id=1, base_price=Decimal("100.00"), sale_percentage=Decimal("25")),
        2: CatalogItem(id=2, base_price=Decimal("300.00")),
    }
    combo = ComboDefinition(id=7, title="Duo", discount_rule=PercentageDiscount(Decimal("20")),
                            lines=[ComboLine(1, 2), ComboLine(2, 1)])
    lines = add_combo_to_cart(combo, catalog.get)

    # the catalog changing after add time does not move the combo price
    catalog[1] = CatalogItem(id=1, base_price=Decimal("150.00"))
    totals = compute_order_totals(lines, delivery_rule=DELIVERY)

    assert totals.subtotal == Decimal("400.00")
    assert totals.combo_allocated_discount == Decimal("100.00")
    assert totals.grand_total == Decimal("499.00")


def test_coupon_on_unchanged_cart():
    cart = [line(1, "1200")]
    validation, applied = apply_coupon(SAVE10, cart, NOW)
    assert validation.ok

    totals = compute_order_totals(cart, applied, DELIVERY, now=NOW)
    assert totals.subtotal == Decimal("1200.00")
    assert totals.coupon_discount == Decimal("120.00")
    assert totals.delivery_charge == Decimal("0")
    assert totals.grand_total == Decimal("1080.00")
    assert totals.grand_total_minor == 108000
    assert totals.applied_coupon is applied
    assert totals.coupon_rejection is None


def test_totals_are_idempotent():
    cart = [line(1, "1200"), line(2, "35.50", 2, sale_percentage=Decimal("5"))]
    _, applied = apply_coupon(SAVE10, cart, NOW)

    first = compute_order_totals(cart, applied, DELIVERY, now=NOW)
    second = compute_order_totals(cart, applied, DELIVERY, now=NOW)
    assert first == second


def test_stale_coupon_is_revalidated_against_new_subtotal():
    _, applied = apply_coupon(SAVE10, [line(1, "1200")], NOW)

    totals = compute_order_totals([line(1, "1200", 2)], applied, DELIVERY, now=NOW)
    assert totals.coupon_discount == Decimal("240.00")
    assert totals.applied_coupon.discount_amount == Decimal("240")
    assert totals.applied_coupon.cart_fingerprint != applied.cart_fingerprint
    # the caller's coupon is not modified
    assert applied.discount_amount == Decimal("120")


def test_stale_coupon_that_no_longer_qualifies_is_dropped():
    _, applied = apply_coupon(SAVE10, [line(1, "1200")], NOW)

    totals = compute_order_totals([line(1, "800")], applied, DELIVERY, now=NOW)
    assert totals.coupon_discount == Decimal("0")
    assert totals.applied_coupon is None
    assert totals.coupon_rejection == CouponReason.BELOW_MINIMUM_PURCHASE
    assert totals.grand_total == Decimal("899.00")


def test_unselected_lines_do_not_invalidate_coupon():
    cart = [line(1, "1200")]
    _, applied = apply_coupon(SAVE10, cart, NOW)

    totals = compute_order_totals(cart + [line(2, "50", selected=False)], applied, DELIVERY, now=NOW)
    assert totals.applied_coupon is applied


def test_carried_discount_amount_is_recomputed():
    cart = [line(1, "1200")]
    _, applied = apply_coupon(SAVE10, cart, NOW)

    for forged in ("1100", "5000"):
        totals = compute_order_totals(cart, replace(applied, discount_amount=Decimal(forged)), DELIVERY, now=NOW)
        assert totals.coupon_discount == Decimal("120.00")
        assert totals.grand_total == Decimal("1080.00")
        assert totals.applied_coupon.discount_amount == Decimal("120")


class Overshoot:
    def apply(self, base):
        return Decimal(base) * 2


def test_rule_returning_more_than_subtotal_is_an_invariant_error():
    broken = replace(SAVE10, discount_rule=Overshoot(), min_purchase_amount=Decimal("0"))
    cart = [line(1, "100")]
    with pytest.raises(PricingInvariantError):
        apply_coupon(broken, cart, NOW)


def test_deactivated_coupon_is_dropped_on_unchanged_cart():
    cart = [line(1, "1200")]
    _, applied = apply_coupon(SAVE10, cart, NOW)
    withdrawn = replace(applied, coupon=replace(SAVE10, is_active=False))

    totals = compute_order_totals(cart, withdrawn, DELIVERY, now=NOW)
    assert totals.coupon_discount == Decimal("0")
    assert totals.applied_coupon is None
    assert totals.coupon_rejection == CouponReason.NOT_ACTIVE_OR_EXPIRED


def test_coupon_expiring_after_apply_is_dropped():
    cart = [line(1, "1200")]
    dated = replace(SAVE10, valid_until="2024-01-20")
    _, applied = apply_coupon(dated, cart, NOW)

    totals = compute_order_totals(cart, applied, DELIVERY, now=datetime(2024, 1, 21, 9, 0))
    assert totals.applied_coupon is None
    assert totals.coupon_rejection == CouponReason.NOT_ACTIVE_OR_EXPIRED


def test_fingerprint_ignores_line_order():
    a, b = line(1, "10"), line(2, "20", 3)
    assert cart_fingerprint([a, b]) == cart_fingerprint([b, a])
    assert cart_fingerprint([a, b]) != cart_fingerprint([a, replace(b, quantity=4)])


def test_remove_combo_lines():
    lines = [line(1, "10"), line(2, "20", origin_combo_id=7), line(3, "30", origin_combo_id=8)]
    assert [kept.item_id for kept in remove_combo_lines(lines, 7)] == [1, 3]


def test_applied_coupon_records_fingerprint_and_time():
    cart = [line(1, "1200")]
    _, applied = apply_coupon(SAVE10, cart, NOW)
    assert isinstance(applied, AppliedCoupon)
    assert applied.cart_fingerprint == cart_fingerprint(cart)
    assert applied.validated_at == NOW
    assert applied.eligible_subtotal == Decimal("1200")
