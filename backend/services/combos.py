import logging
from decimal import Decimal
from typing import Dict, List, Optional

from services.allocation import UnitLedger, cap_discount, distribute_discount, total_value
from services.money import ZERO, percent_of, round_money
from services.pricing_types import (
    AdjustmentLine,
    AdjustmentMetadata,
    AppliedPromotion,
    ComboType,
    ConditionRole,
    ConditionSnapshot,
    DiscountType,
    PricingLineItem,
    PromotionLevel,
    PromotionSnapshot,
    PromotionSuggestion,
)

logger = logging.getLogger(__name__)


def times_applicable(conditions: List[ConditionSnapshot], ledger: UnitLedger) -> int:
    """
    How many whole times a set of BUY conditions is satisfied by the cart.

    Conditions naming the same product are summed first, so two conditions on
    one product never count the same units twice.
    """
    required: Dict[int, int] = {}
    for condition in conditions:
        required[condition.product_id] = required.get(condition.product_id, 0) + condition.quantity
    if not required:
        return 0
    return min(ledger.available(product_id) // qty for product_id, qty in required.items())


def _discount(promotion: PromotionSnapshot, base: Decimal, units: int) -> Decimal:
    if promotion.discount_type == DiscountType.PERCENT:
        return percent_of(base, promotion.discount_value)
    if promotion.discount_type == DiscountType.FIXED:
        return round_money(promotion.discount_value * units)
    raise ValueError(f"Unsupported discount type: {promotion.discount_type}")


def _adjustment(promotion: PromotionSnapshot, metadata: AdjustmentMetadata) -> AppliedPromotion:
    return AppliedPromotion(
        promotion_id=promotion.id,
        promotion_name=promotion.name,
        promotion_type=promotion.type,
        level=PromotionLevel.AUTO,
        combo_type=promotion.combo_type,
        description=promotion.description,
        metadata=metadata,
    )


def _suggestion(promotion: PromotionSnapshot, condition: ConditionSnapshot, required: int, current: int) -> PromotionSuggestion:
    missing = required - current
    label = condition.product_name or f"product #{condition.product_id}"
    return PromotionSuggestion(
        product_id=condition.product_id,
        required_quantity=required,
        current_quantity=current,
        message=f"Add {missing} more {label} to unlock {promotion.name}",
        product_name=condition.product_name,
        product_image=condition.product_image,
        product_price=condition.product_price,
        auto_add=True,
    )


def evaluate_product_combo(promotion: PromotionSnapshot, lines: List[PricingLineItem]) -> Optional[AppliedPromotion]:
    """
    Applies a PRODUCT_COMBO: every BUY condition must be present, and the whole
    bundle is discounted as many times as it fits in the cart.

    Returns:
        The adjustment, or None when the combo does not apply at all.
    """
    buy = promotion.conditions_with_role(ConditionRole.BUY)
    ledger = UnitLedger(lines)
    times = times_applicable(buy, ledger)
    if times <= 0:
        return None

    allocations = []
    for condition in buy:
        allocations.extend(ledger.claim(condition.product_id, condition.quantity * times))

    base = total_value(allocations)
    amount = cap_discount(_discount(promotion, base, times), base, promotion.max_discount)

    adjustment = _adjustment(promotion, AdjustmentMetadata(
        times_applied=times,
        base_amount=base,
        discount_type=promotion.discount_type,
        discount_value=promotion.discount_value,
        max_discount=promotion.max_discount,
    ))
    if amount <= ZERO:
        return adjustment

    adjustment.items = distribute_discount(allocations, amount, promotion.id, PromotionLevel.AUTO)
    adjustment.amount = round_money(sum((i.discount_amount for i in adjustment.items), ZERO))
    if adjustment.amount > ZERO:
        for allocation in allocations:
            allocation.line.is_in_combo = True
    return adjustment


def evaluate_buy_x_get_y(promotion: PromotionSnapshot, lines: List[PricingLineItem]) -> Optional[AppliedPromotion]:
    """
    Applies a BUY_X_GET_Y: the BUY conditions decide how many times the offer
    is earned, and only the GET items are discounted.

    For every GET condition the cart does not fully cover, a suggestion names
    the missing quantity so the client can offer to add it.

    Returns:
        The adjustment, or None when the BUY side is not met even once.
    """
    buy = promotion.conditions_with_role(ConditionRole.BUY)
    get = promotion.conditions_with_role(ConditionRole.GET)
    ledger = UnitLedger(lines)
    times = times_applicable(buy, ledger)
    if times <= 0:
        return None

    buy_allocations = []
    for condition in buy:
        buy_allocations.extend(ledger.claim(condition.product_id, condition.quantity * times))

    remaining_cap = promotion.max_discount if promotion.max_discount and promotion.max_discount > ZERO else None
    gift_parts = []
    suggestions = []
    gift_base_total = ZERO

    for condition in get:
        required = condition.quantity * times
        available = ledger.available(condition.product_id)
        granted = min(required, available)
        if available < required:
            suggestions.append(_suggestion(promotion, condition, required, available))
        if granted <= 0:
            continue

        gift_allocations = ledger.claim(condition.product_id, granted, is_gift=True)
        gift_base = total_value(gift_allocations)
        gift_base_total += gift_base
        amount = cap_discount(_discount(promotion, gift_base, granted), gift_base, None)
        # max_discount is one budget shared by all GET conditions
        if remaining_cap is not None:
            amount = min(amount, remaining_cap)
            remaining_cap = round_money(remaining_cap - amount)
        gift_parts.append((gift_allocations, amount))

    adjustment = _adjustment(promotion, AdjustmentMetadata(
        times_applied=times,
        base_amount=total_value(buy_allocations),
        gift_base_amount=round_money(gift_base_total),
        discount_type=promotion.discount_type,
        discount_value=promotion.discount_value,
        max_discount=promotion.max_discount,
    ))
    adjustment.suggestions = suggestions

    items: List[AdjustmentLine] = []
    for gift_allocations, amount in gift_parts:
        items.extend(distribute_discount(gift_allocations, amount, promotion.id, PromotionLevel.AUTO))
    realized = round_money(sum((i.discount_amount for i in items), ZERO))
    if realized <= ZERO:
        return adjustment

    for item in items:
        if item.discount_amount > ZERO:
            line = next(l for l in lines if l.variant_id == item.variant_id)
            line.is_gift = True
            line.is_in_combo = True
    discounted = {item.variant_id for item in items}
    for allocation in buy_allocations:
        allocation.line.is_in_combo = True
        if allocation.line.variant_id not in discounted:
            items.append(AdjustmentLine(
                product_id=allocation.line.product_id,
                variant_id=allocation.line.variant_id,
                quantity=allocation.quantity,
            ))
            discounted.add(allocation.line.variant_id)

    adjustment.items = items
    adjustment.amount = realized
    return adjustment


def evaluate_combo(promotion: PromotionSnapshot, lines: List[PricingLineItem]) -> Optional[AppliedPromotion]:
    if promotion.combo_type == ComboType.PRODUCT_COMBO:
        return evaluate_product_combo(promotion, lines)
    if promotion.combo_type == ComboType.BUY_X_GET_Y:
        return evaluate_buy_x_get_y(promotion, lines)
    raise ValueError(f"Promotion {promotion.id} has unsupported combo type: {promotion.combo_type}")


def evaluate_combos(promotions: List[PromotionSnapshot], lines: List[PricingLineItem]) -> List[AppliedPromotion]:
    """
    Evaluates every combo promotion against the cart, in promotion id order.

    Returns:
        One adjustment per combo that applied or produced a suggestion.
    """
    results = []
    for promotion in sorted(promotions, key=lambda p: p.id):
        adjustment = evaluate_combo(promotion, lines)
        if adjustment is None:
            logger.debug(f"Combo {promotion.id} not met by cart")
            continue
        logger.debug(
            f"Combo {promotion.id} x{adjustment.metadata.times_applied}: "
            f"amount={adjustment.amount}, suggestions={len(adjustment.suggestions)}"
        )
        results.append(adjustment)
    return results
