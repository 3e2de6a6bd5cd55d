import logging
from typing import List

from errors import Conflict
from services.allocation import Allocation, cap_discount, distribute_discount
from services.money import ZERO, percent_of, round_money
from services.pricing_types import (
    AdjustmentMetadata,
    AppliedPromotion,
    ConditionRole,
    CouponType,
    DiscountType,
    PricingLineItem,
    PromotionLevel,
    PromotionSnapshot,
)

logger = logging.getLogger(__name__)


def coupon_product_ids(coupon: PromotionSnapshot) -> set:
    return {c.product_id for c in coupon.conditions_with_role(ConditionRole.APPLIES_TO)}


def check_combo_conflict(coupon: PromotionSnapshot, combos: List[PromotionSnapshot]) -> None:
    """
    Rejects a SPECIFIC_PRODUCTS coupon that targets a product taking part in
    any loaded combo, whether or not that combo triggers for this cart.

    Raises:
        Conflict: Naming each conflicting product and the combos it belongs to.
    """
    if coupon.coupon_type != CouponType.SPECIFIC_PRODUCTS:
        return

    targets = coupon_product_ids(coupon)
    names = {c.product_id: c.product_name for c in coupon.conditions}
    details = []
    for product_id in sorted(targets):
        combo_ids = [combo.id for combo in combos if product_id in combo.product_ids()]
        if combo_ids:
            details.append({
                "productId": product_id,
                "productName": names.get(product_id),
                "comboPromotionIds": combo_ids,
            })
    if details:
        labels = ", ".join(d["productName"] or f"#{d['productId']}" for d in details)
        raise Conflict(
            f"Coupon {coupon.code} cannot be combined with combo offers on: {labels}",
            details=details,
        )


def _coupon_discount(coupon: PromotionSnapshot, base):
    if coupon.discount_type == DiscountType.PERCENT:
        return percent_of(base, coupon.discount_value)
    if coupon.discount_type == DiscountType.FIXED:
        return round_money(coupon.discount_value)
    raise ValueError(f"Unsupported discount type: {coupon.discount_type}")


def _eligible_lines(coupon: PromotionSnapshot, lines: List[PricingLineItem]) -> List[PricingLineItem]:
    if coupon.coupon_type == CouponType.ORDER_TOTAL:
        return list(lines)
    if coupon.coupon_type == CouponType.SPECIFIC_PRODUCTS:
        targets = coupon_product_ids(coupon)
        return [line for line in lines if line.product_id in targets]
    raise ValueError(f"Coupon {coupon.id} has unsupported coupon type: {coupon.coupon_type}")


def evaluate_coupon(coupon: PromotionSnapshot, lines: List[PricingLineItem]) -> AppliedPromotion:
    """
    Applies a coupon to the cart after combos have been booked.

    ORDER_TOTAL coupons discount the whole cart subtotal, SPECIFIC_PRODUCTS
    coupons the subtotal of the matching lines. The minimum order value is
    checked against that same base, so unrelated items never unlock a product
    coupon. Below the minimum the coupon gives no discount (and no error).

    Returns:
        The coupon adjustment; its amount may be zero.
    """
    eligible = _eligible_lines(coupon, lines)
    base = round_money(sum((line.sub_total for line in eligible), ZERO))

    adjustment = AppliedPromotion(
        promotion_id=coupon.id,
        promotion_name=coupon.name,
        promotion_type=coupon.type,
        level=PromotionLevel.COUPON,
        coupon_type=coupon.coupon_type,
        description=coupon.description,
        metadata=AdjustmentMetadata(
            times_applied=1,
            base_amount=base,
            discount_type=coupon.discount_type,
            discount_value=coupon.discount_value,
            max_discount=coupon.max_discount,
        ),
    )

    if base < coupon.min_order_value:
        logger.info(f"Coupon {coupon.code} inactive: eligible subtotal {base} below minimum {coupon.min_order_value}")
        adjustment.metadata.times_applied = 0
        return adjustment
    if not eligible:
        adjustment.metadata.times_applied = 0
        return adjustment

    amount = cap_discount(_coupon_discount(coupon, base), base, coupon.max_discount)
    allocations = [Allocation(line=line, quantity=line.quantity) for line in eligible if line.remaining > ZERO]
    adjustment.items = distribute_discount(allocations, amount, coupon.id, PromotionLevel.COUPON)
    adjustment.amount = round_money(sum((i.discount_amount for i in adjustment.items), ZERO))
    return adjustment
