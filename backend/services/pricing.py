import logging
from dataclasses import replace
from decimal import Decimal
from typing import Callable, List, Optional

from errors import InvalidInput, PricingError
from services.cart import aggregate_items, build_line_items, resolve_variants
from services.combos import evaluate_combos
from services.coupons import check_combo_conflict, evaluate_coupon
from services.money import ZERO, round_money
from services.pricing_types import (
    AppliedPromotion,
    PricingContext,
    PricingLineItem,
    PricingRequest,
    PricingSummary,
    PricingTotals,
)
from services.promotions import load_catalog
from utils import utcnow

logger = logging.getLogger(__name__)


def calculate_shipping_fee(context: PricingContext) -> Decimal:
    """Shipping hook point; no shipping rules are configured."""
    return ZERO


def calculate_tax(net_amount: Decimal, context: PricingContext) -> Decimal:
    """Tax hook point; no tax rules are configured."""
    return ZERO


def _normalize_context(context: Optional[PricingContext]) -> PricingContext:
    context = replace(context) if context else PricingContext()
    code = (context.promotion_code or "").strip()
    context.promotion_code = code or None
    return context


def build_summary(
    lines: List[PricingLineItem],
    combo_adjustments: List[AppliedPromotion],
    coupon_adjustment: Optional[AppliedPromotion],
    context: PricingContext,
) -> PricingSummary:
    """
    Folds line-level and promotion-level results into the final summary.

    Only promotions that discounted something, or that carry a suggestion,
    are listed in appliedPromotions.
    """
    sub_total = round_money(sum((line.sub_total for line in lines), ZERO))
    auto_discount = round_money(sum((a.amount for a in combo_adjustments), ZERO))
    coupon_discount = coupon_adjustment.amount if coupon_adjustment else ZERO
    discount_total = round_money(auto_discount + coupon_discount)

    net = round_money(sub_total - discount_total)
    shipping_fee = round_money(calculate_shipping_fee(context))
    tax_total = round_money(calculate_tax(net, context))

    applied = [a for a in combo_adjustments if a.is_reportable()]
    if coupon_adjustment and coupon_adjustment.is_reportable():
        applied.append(coupon_adjustment)

    totals = PricingTotals(
        sub_total=sub_total,
        auto_discount_total=auto_discount,
        coupon_discount_total=coupon_discount,
        discount_total=discount_total,
        shipping_fee=shipping_fee,
        tax_total=tax_total,
        total_amount=round_money(sub_total - discount_total + shipping_fee + tax_total),
    )
    return PricingSummary(items=lines, totals=totals, applied_promotions=applied, context=context)


class PricingService:
    """
    Prices a cart against the running promotion catalog.

    The calculation is a pure read: it loads variants and promotions through
    the repository, evaluates combos then the coupon, and returns a fresh
    PricingSummary. Nothing is written, so the same inputs against an
    unchanged catalog always produce the same summary.
    """
    def __init__(self, repository, clock: Callable = utcnow):
        self.repository = repository
        self.clock = clock

    def calculate(self, request: PricingRequest) -> PricingSummary:
        try:
            return self._calculate(request)
        except PricingError as e:
            logger.warning(f"Pricing rejected: {e.message} {e.details}")
            raise

    def _calculate(self, request: PricingRequest) -> PricingSummary:
        if not request.items:
            raise InvalidInput("Cart must contain at least one item.", details=[{"field": "items", "message": "must not be empty"}])

        now = self.clock()
        context = _normalize_context(request.context)
        aggregated = aggregate_items(request.items)

        user_group_ids = self.repository.find_user_group_ids(context.user_id)
        catalog = load_catalog(self.repository, context, now, user_group_ids)
        variants = resolve_variants(self.repository, aggregated.keys())

        if catalog.coupon:
            check_combo_conflict(catalog.coupon, catalog.combos)

        lines = build_line_items(aggregated, variants)
        combo_adjustments = evaluate_combos(catalog.combos, lines)
        coupon_adjustment = evaluate_coupon(catalog.coupon, lines) if catalog.coupon else None

        summary = build_summary(lines, combo_adjustments, coupon_adjustment, context)
        logger.info(
            f"Priced {len(lines)} lines: subtotal={summary.totals.sub_total}, "
            f"discount={summary.totals.discount_total}, total={summary.totals.total_amount}, "
            f"promotions={[p.promotion_id for p in summary.applied_promotions]}"
        )
        return summary
