import logging
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import joinedload, selectinload

from schema import Promotion, PromotionCondition, ProductVariant, UserCustomerGroup
from services.money import to_money
from services.pricing_types import ConditionSnapshot, PromotionSnapshot, ResolvedVariant
from utils import as_utc

logger = logging.getLogger(__name__)


def _condition_snapshot(condition: PromotionCondition) -> ConditionSnapshot:
    product = condition.product
    return ConditionSnapshot(
        product_id=condition.product_id,
        role=condition.role,
        quantity=max(1, condition.quantity or 1),
        product_name=product.name if product else None,
        product_image=product.image if product else None,
        product_price=to_money(product.original_price) if product and product.original_price is not None else None,
    )


def promotion_snapshot(promotion: Promotion) -> PromotionSnapshot:
    """
    Materializes a Promotion row (with its conditions and scope targets) into
    an immutable value object the pricing engine can work with.
    """
    return PromotionSnapshot(
        id=promotion.id,
        name=promotion.name,
        type=promotion.type,
        combo_type=promotion.combo_type,
        coupon_type=promotion.coupon_type,
        code=promotion.code,
        description=promotion.description,
        discount_type=promotion.discount_type,
        discount_value=to_money(promotion.discount_value),
        max_discount=to_money(promotion.max_discount) if promotion.max_discount is not None else None,
        min_order_value=to_money(promotion.min_order_value),
        start_date=promotion.start_date,
        end_date=promotion.end_date,
        is_active=bool(promotion.is_active),
        apply_scope=promotion.apply_scope,
        conditions=tuple(_condition_snapshot(c) for c in promotion.conditions),
        branch_ids=tuple(b.branch_id for b in promotion.branches),
        customer_group_ids=tuple(g.customer_group_id for g in promotion.customer_groups),
    )


class CatalogRepository:
    """
    Read-only access to variants and promotions for the pricing engine.

    Every method returns fully materialized snapshots; callers never see
    ORM instances or lazy relationships.
    """
    def __init__(self, db):
        self.db = db

    def _promotion_query(self):
        return self.db.query(Promotion).options(
            selectinload(Promotion.conditions).joinedload(PromotionCondition.product),
            selectinload(Promotion.branches),
            selectinload(Promotion.customer_groups),
        )

    def find_variants_by_ids(self, ids: Iterable[int]) -> List[ResolvedVariant]:
        """
        Args:
            ids: Distinct variant ids to load.

        Returns:
            The variants that exist, each joined with its owning product.
            Missing ids are simply absent from the result.
        """
        ids = list(ids)
        if not ids:
            return []
        rows = (
            self.db.query(ProductVariant)
            .options(joinedload(ProductVariant.product))
            .filter(ProductVariant.id.in_(ids))
            .all()
        )
        return [
            ResolvedVariant(
                id=v.id,
                product_id=v.product_id,
                unit_price=to_money(v.price),
                product_name=v.product.name if v.product else f"Variant {v.id}",
                variant_name=v.name,
                product_image=v.image or (v.product.image if v.product else None),
            )
            for v in rows
        ]

    def find_active_promotions(self, now: datetime) -> List[PromotionSnapshot]:
        """
        Loads every active promotion whose validity window contains `now`.

        Returns:
            Snapshots ordered by promotion id.
        """
        # dates are stored as naive UTC
        at = as_utc(now).replace(tzinfo=None)
        rows = (
            self._promotion_query()
            .filter(
                Promotion.is_active.is_(True),
                Promotion.start_date <= at,
                Promotion.end_date >= at,
            )
            .order_by(Promotion.id.asc())
            .all()
        )
        logger.debug(f"Loaded {len(rows)} running promotions")
        return [promotion_snapshot(p) for p in rows]

    def find_promotion_by_code(self, code: str) -> Optional[PromotionSnapshot]:
        normalized = (code or "").strip().lower()
        if not normalized:
            return None
        row = (
            self._promotion_query()
            .filter(func.lower(Promotion.code) == normalized)
            .order_by(Promotion.id.asc())
            .first()
        )
        return promotion_snapshot(row) if row else None

    def find_promotion_by_id(self, promotion_id: int) -> Optional[PromotionSnapshot]:
        row = self._promotion_query().filter(Promotion.id == promotion_id).first()
        return promotion_snapshot(row) if row else None

    def find_user_group_ids(self, user_id: Optional[int]) -> List[int]:
        if not user_id:
            return []
        rows = self.db.query(UserCustomerGroup).filter_by(user_id=user_id).all()
        return [r.customer_group_id for r in rows]
