from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional

from services.money import ZERO, round_money
from services.pricing_types import AdjustmentLine, AppliedPromotionRef, PricingLineItem, PromotionLevel


@dataclass
class Allocation:
    """A slice of one cart line claimed by a promotion condition."""
    line: PricingLineItem
    quantity: int
    is_gift: bool = False

    @property
    def value(self) -> Decimal:
        return round_money(self.line.unit_price * self.quantity)


class UnitLedger:
    """
    Tracks how many units of each cart line one promotion has already claimed,
    so a BUY unit is never also counted as that promotion's GET unit.

    A fresh ledger is used per promotion; promotions do not consume units
    from each other.
    """
    def __init__(self, lines: List[PricingLineItem]):
        self._lines = lines
        self._claimed: Dict[int, int] = {}

    def available(self, product_id: int) -> int:
        return sum(
            line.quantity - self._claimed.get(line.variant_id, 0)
            for line in self._lines
            if line.product_id == product_id
        )

    def claim(self, product_id: int, quantity: int, is_gift: bool = False) -> List[Allocation]:
        """
        Claims up to `quantity` units of a product, walking its lines in cart order.
        """
        allocations = []
        remaining = quantity
        for line in self._lines:
            if remaining <= 0:
                break
            if line.product_id != product_id:
                continue
            free = line.quantity - self._claimed.get(line.variant_id, 0)
            take = min(free, remaining)
            if take <= 0:
                continue
            self._claimed[line.variant_id] = self._claimed.get(line.variant_id, 0) + take
            remaining -= take
            allocations.append(Allocation(line=line, quantity=take, is_gift=is_gift))
        return allocations


def total_value(allocations: List[Allocation]) -> Decimal:
    return round_money(sum((a.value for a in allocations), ZERO))


def cap_discount(amount: Decimal, base: Decimal, max_discount: Optional[Decimal]) -> Decimal:
    """
    Clamps a discount to [0, base], and to max_discount when one is configured.

    A max_discount of zero or None means "no cap".
    """
    if max_discount is not None and max_discount > ZERO:
        amount = min(amount, max_discount)
    return round_money(max(ZERO, min(amount, base)))


def apply_line_discount(line: PricingLineItem, amount: Decimal, promotion_id: int, level: PromotionLevel) -> Decimal:
    """
    Books a discount on a line, never exceeding what the line has left.

    Returns:
        The amount actually applied.
    """
    applied = round_money(min(amount, line.remaining))
    if applied <= ZERO:
        return ZERO
    line.discount_total = round_money(line.discount_total + applied)
    line.total_amount = round_money(line.sub_total - line.discount_total)

    for ref in line.applied_promotions:
        if ref.promotion_id == promotion_id and ref.level == level:
            ref.amount = round_money(ref.amount + applied)
            break
    else:
        line.applied_promotions.append(AppliedPromotionRef(promotion_id=promotion_id, level=level, amount=applied))
    return applied


def distribute_discount(
    allocations: List[Allocation],
    amount: Decimal,
    promotion_id: int,
    level: PromotionLevel,
) -> List[AdjustmentLine]:
    """
    Spreads a promotion's discount over its allocations in proportion to each
    allocation's value. The last allocation absorbs the rounding remainder, and
    a second pass hands any amount a full line could not take to lines with room.

    Returns:
        One AdjustmentLine per variant, with the amount actually booked.
    """
    allocations = [a for a in allocations if a.quantity > 0]
    if not allocations or amount <= ZERO:
        return []

    value_total = sum((a.value for a in allocations), ZERO)
    quantity_total = sum(a.quantity for a in allocations)
    remaining = round_money(amount)
    per_variant: Dict[int, AdjustmentLine] = {}

    for allocation in allocations:
        entry = per_variant.get(allocation.line.variant_id)
        if entry is None:
            per_variant[allocation.line.variant_id] = AdjustmentLine(
                product_id=allocation.line.product_id,
                variant_id=allocation.line.variant_id,
                quantity=allocation.quantity,
                is_gift=allocation.is_gift,
            )
        else:
            entry.quantity += allocation.quantity
            entry.is_gift = entry.is_gift or allocation.is_gift

    def book(allocation: Allocation, share: Decimal):
        nonlocal remaining
        applied = apply_line_discount(allocation.line, min(share, remaining), promotion_id, level)
        remaining = round_money(remaining - applied)
        entry = per_variant[allocation.line.variant_id]
        entry.discount_amount = round_money(entry.discount_amount + applied)

    for index, allocation in enumerate(allocations):
        if remaining <= ZERO:
            break
        if index == len(allocations) - 1:
            share = remaining
        elif value_total > ZERO:
            share = round_money(amount * allocation.value / value_total)
        else:
            share = round_money(amount * allocation.quantity / quantity_total)
        book(allocation, share)

    for allocation in allocations:
        if remaining <= ZERO:
            break
        if allocation.line.remaining > ZERO:
            book(allocation, remaining)

    return list(per_variant.values())
