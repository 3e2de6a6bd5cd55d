import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from errors import InvalidInput
from services.pricing_types import (
    ApplyScope,
    ConditionRole,
    CouponType,
    PricingContext,
    PromotionSnapshot,
    PromotionType,
)

logger = logging.getLogger(__name__)


@dataclass
class PromotionCatalog:
    """
    The promotions relevant to one calculation, already filtered by activity,
    validity window and apply scope.
    """
    combos: List[PromotionSnapshot] = field(default_factory=list)
    coupon: Optional[PromotionSnapshot] = None


def is_in_scope(promotion: PromotionSnapshot, context: PricingContext, user_group_ids: List[int]) -> bool:
    """
    Decides whether a promotion targets the branch / customer behind a request.

    GLOBAL promotions always apply. BRANCH promotions need a matching branchId,
    CUSTOMER_GROUP promotions need the user to belong to one of their groups.
    """
    if promotion.apply_scope == ApplyScope.GLOBAL:
        return True
    if promotion.apply_scope == ApplyScope.BRANCH:
        return context.branch_id is not None and context.branch_id in promotion.branch_ids
    if promotion.apply_scope == ApplyScope.CUSTOMER_GROUP:
        return bool(set(user_group_ids) & set(promotion.customer_group_ids))
    raise ValueError(f"Unsupported apply scope: {promotion.apply_scope}")


def partition(promotions: List[PromotionSnapshot]) -> PromotionCatalog:
    """Keeps the combos; coupons only ever apply through an explicit code or id."""
    catalog = PromotionCatalog()
    for promotion in promotions:
        if promotion.type == PromotionType.COMBO:
            catalog.combos.append(promotion)
        elif promotion.type == PromotionType.COUPON:
            continue
        else:
            raise ValueError(f"Unsupported promotion type: {promotion.type}")
    return catalog


def _lookup_coupon(repository, context: PricingContext) -> Optional[PromotionSnapshot]:
    if context.promotion_code:
        return repository.find_promotion_by_code(context.promotion_code)
    if context.promotion_id:
        return repository.find_promotion_by_id(context.promotion_id)
    return None


def match_coupon(repository, context: PricingContext, now: datetime, user_group_ids: List[int]) -> PromotionSnapshot:
    """
    Resolves the coupon named by the request's promotionCode (or promotionId).

    On success the context is updated with the coupon's canonical id and code.

    Raises:
        InvalidInput: If the coupon is unknown, not a coupon, inactive, outside
            its validity window, out of scope, or misconfigured.
    """
    requested = context.promotion_code or context.promotion_id
    coupon = _lookup_coupon(repository, context)

    if coupon is None or coupon.type != PromotionType.COUPON:
        raise InvalidInput(
            "Promotion code is invalid or unavailable.",
            details=[{"field": "promotionCode", "value": requested, "message": "no matching coupon"}],
        )
    if not coupon.is_running(now) or not is_in_scope(coupon, context, user_group_ids):
        raise InvalidInput(
            "Promotion code is invalid or unavailable.",
            details=[{"field": "promotionCode", "value": requested, "message": "coupon is not active for this order"}],
        )
    if coupon.coupon_type is None:
        raise InvalidInput(f"Coupon {coupon.code} has no coupon type configured.")
    if coupon.coupon_type == CouponType.SPECIFIC_PRODUCTS and not coupon.conditions_with_role(ConditionRole.APPLIES_TO):
        raise InvalidInput(f"Coupon {coupon.code} has no eligible products configured.")

    context.promotion_id = coupon.id
    context.promotion_code = coupon.code or context.promotion_code
    return coupon


def load_catalog(repository, context: PricingContext, now: datetime, user_group_ids: List[int]) -> PromotionCatalog:
    """
    Loads every running combo in scope for the request, plus the requested coupon.

    Promotions are loaded regardless of whether the cart can satisfy them, since
    almost-qualifying combos produce upsell suggestions.

    Args:
        repository: The catalog read port.
        context: Request context; its coupon fields select the single coupon.
        now: Evaluation instant.
        user_group_ids: Customer groups of the requesting user.

    Returns:
        A PromotionCatalog with the in-scope combos and the matched coupon.
    """
    promotions = [
        p for p in repository.find_active_promotions(now)
        if is_in_scope(p, context, user_group_ids)
    ]
    catalog = partition(promotions)
    if context.promotion_code or context.promotion_id:
        catalog.coupon = match_coupon(repository, context, now, user_group_ids)
    logger.debug(
        f"Catalog: {len(catalog.combos)} combos, "
        f"coupon={catalog.coupon.id if catalog.coupon else None}"
    )
    return catalog
