#!/usr/bin/env python3
import os
import sys
import logging
from datetime import timedelta

# Add the parent directory to sys.path to allow imports from the backend
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from db import SessionLocal, init_db
from schema import Product, ProductVariant, Promotion, PromotionCondition
from services.pricing_types import ComboType, ConditionRole, CouponType, DiscountType, PromotionType
from utils import utcnow

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

# (product_id, name, price, variant_id)
DEMO_PRODUCTS = [
    (101, "Combo Item", 100, 1),
    (202, "Coupon Item", 150, 2),
    (303, "Stacked Item", 120, 3),
    (501, "Buy Item", 200, 10),
    (502, "Gift Item", 150, 11),
    (601, "Combo Trio", 180, 20),
    (602, "Bonus Scarf", 99000, None),
]


def seed_demo_catalog(db) -> None:
    """
    Populates a demo catalog covering every promotion shape the engine supports.

    Idempotent: existing products and promotions with the same ids are left alone.
    """
    now = utcnow().replace(tzinfo=None)
    window = dict(start_date=now - timedelta(days=1), end_date=now + timedelta(days=30))

    for product_id, name, price, variant_id in DEMO_PRODUCTS:
        if db.get(Product, product_id) is None:
            db.add(Product(id=product_id, name=name, original_price=price))
        if variant_id is not None and db.get(ProductVariant, variant_id) is None:
            db.add(ProductVariant(id=variant_id, product_id=product_id, name=f"{name} - Default", price=price))
    db.flush()

    promotions = [
        Promotion(
            id=99, name="Buy 2 Save 10%", type=PromotionType.COMBO, combo_type=ComboType.PRODUCT_COMBO,
            discount_type=DiscountType.PERCENT, discount_value=10, **window,
            conditions=[PromotionCondition(product_id=101, quantity=2, role=ConditionRole.BUY)],
        ),
        Promotion(
            id=777, name="Buy 2 Get 1", type=PromotionType.COMBO, combo_type=ComboType.BUY_X_GET_Y,
            discount_type=DiscountType.PERCENT, discount_value=100, **window,
            conditions=[
                PromotionCondition(product_id=501, quantity=2, role=ConditionRole.BUY),
                PromotionCondition(product_id=502, quantity=1, role=ConditionRole.GET),
            ],
        ),
        Promotion(
            id=778, name="Incomplete Gift", type=PromotionType.COMBO, combo_type=ComboType.BUY_X_GET_Y,
            discount_type=DiscountType.PERCENT, discount_value=100, **window,
            conditions=[
                PromotionCondition(product_id=601, quantity=2, role=ConditionRole.BUY),
                PromotionCondition(product_id=602, quantity=1, role=ConditionRole.GET),
            ],
        ),
        Promotion(
            id=100, name="20% off", code="SAVE20", type=PromotionType.COUPON,
            coupon_type=CouponType.SPECIFIC_PRODUCTS, discount_type=DiscountType.PERCENT, discount_value=20, **window,
            conditions=[PromotionCondition(product_id=202, quantity=1, role=ConditionRole.APPLIES_TO)],
        ),
        Promotion(
            id=200, name="Auto", type=PromotionType.COMBO, combo_type=ComboType.PRODUCT_COMBO,
            discount_type=DiscountType.FIXED, discount_value=10, **window,
            conditions=[PromotionCondition(product_id=303, quantity=1, role=ConditionRole.BUY)],
        ),
        Promotion(
            id=201, name="Coupon", code="STACK10", type=PromotionType.COUPON,
            coupon_type=CouponType.SPECIFIC_PRODUCTS, discount_type=DiscountType.PERCENT, discount_value=10, **window,
            conditions=[PromotionCondition(product_id=303, quantity=1, role=ConditionRole.APPLIES_TO)],
        ),
        Promotion(
            id=300, name="50 off orders over 500", code="ORDER50", type=PromotionType.COUPON,
            coupon_type=CouponType.ORDER_TOTAL, discount_type=DiscountType.FIXED, discount_value=50,
            min_order_value=500, **window,
        ),
    ]
    for promotion in promotions:
        if db.get(Promotion, promotion.id) is None:
            db.add(promotion)

    db.commit()
    logger.info(f"Seeded {len(DEMO_PRODUCTS)} products and {len(promotions)} promotions")


def main():
    init_db()
    db = SessionLocal()
    try:
        seed_demo_catalog(db)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
