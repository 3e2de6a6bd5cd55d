from datetime import datetime, timezone
from decimal import Decimal
import schema
from services.money import to_money
from services.pricing_types import (
    ApplyScope,
    ComboType,
    ConditionRole,
    ConditionSnapshot,
    CouponType,
    DiscountType,
    PricingLineItem,
    PromotionSnapshot,
    PromotionType,
    ResolvedVariant,
)

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
# Default validity window; wide enough for endpoint tests that use the real clock
WINDOW_START = datetime(2000, 1, 1, tzinfo=timezone.utc)
WINDOW_END = datetime(2100, 1, 1, tzinfo=timezone.utc)


def fixed_clock():
    return NOW


# --- database seeding ---

def add_product(db, product_id, name="Product", price=0, variant_id=None, image=None, variant_price=None):
    db.add(schema.Product(id=product_id, name=name, image=image, original_price=price))
    if variant_id is not None:
        db.add(schema.ProductVariant(
            id=variant_id,
            product_id=product_id,
            name=f"{name} - Default",
            price=price if variant_price is None else variant_price,
        ))
    db.commit()


def add_promotion(db, promotion_id, name="Promotion", conditions=(), start=None, end=None,
                  branch_ids=(), group_ids=(), **fields):
    """
    Seeds a promotion; conditions are (product_id, quantity, role) tuples.
    Defaults to an active GLOBAL promotion running from 2000 to 2100.
    """
    promotion = schema.Promotion(
        id=promotion_id,
        name=name,
        start_date=start or WINDOW_START,
        end_date=end or WINDOW_END,
        **fields,
    )
    promotion.conditions = [
        schema.PromotionCondition(product_id=pid, quantity=qty, role=role)
        for pid, qty, role in conditions
    ]
    promotion.branches = [schema.PromotionBranch(branch_id=b) for b in branch_ids]
    promotion.customer_groups = [schema.PromotionCustomerGroup(customer_group_id=g) for g in group_ids]
    db.add(promotion)
    db.commit()
    return promotion


def add_product_combo(db, promotion_id, conditions, discount_type=DiscountType.PERCENT, discount_value=10, **fields):
    return add_promotion(
        db, promotion_id,
        name=fields.pop("name", f"Combo {promotion_id}"),
        type=PromotionType.COMBO,
        combo_type=ComboType.PRODUCT_COMBO,
        discount_type=discount_type,
        discount_value=discount_value,
        conditions=[(pid, qty, ConditionRole.BUY) for pid, qty in conditions],
        **fields,
    )


def add_buy_x_get_y(db, promotion_id, buy, get, discount_type=DiscountType.PERCENT, discount_value=100, **fields):
    conditions = [(pid, qty, ConditionRole.BUY) for pid, qty in buy]
    conditions += [(pid, qty, ConditionRole.GET) for pid, qty in get]
    return add_promotion(
        db, promotion_id,
        name=fields.pop("name", f"Gift {promotion_id}"),
        type=PromotionType.COMBO,
        combo_type=ComboType.BUY_X_GET_Y,
        discount_type=discount_type,
        discount_value=discount_value,
        conditions=conditions,
        **fields,
    )


def add_coupon(db, promotion_id, code, coupon_type=CouponType.SPECIFIC_PRODUCTS, product_ids=(),
               discount_type=DiscountType.PERCENT, discount_value=10, **fields):
    return add_promotion(
        db, promotion_id,
        name=fields.pop("name", f"Coupon {code}"),
        code=code,
        type=PromotionType.COUPON,
        coupon_type=coupon_type,
        discount_type=discount_type,
        discount_value=discount_value,
        conditions=[(pid, 1, ConditionRole.APPLIES_TO) for pid in product_ids],
        **fields,
    )


# --- in-memory value objects ---

def make_line(variant_id, product_id, price, quantity, name=None):
    unit_price = to_money(price)
    variant = ResolvedVariant(
        id=variant_id,
        product_id=product_id,
        unit_price=unit_price,
        product_name=name or f"Product {product_id}",
    )
    sub_total = to_money(unit_price * quantity)
    return PricingLineItem(
        variant_id=variant_id,
        product_id=product_id,
        quantity=quantity,
        unit_price=unit_price,
        sub_total=sub_total,
        total_amount=sub_total,
        variant=variant,
    )


def make_condition(product_id, quantity=1, role=ConditionRole.BUY, name=None, image=None, price=None):
    return ConditionSnapshot(
        product_id=product_id,
        role=role,
        quantity=quantity,
        product_name=name,
        product_image=image,
        product_price=to_money(price) if price is not None else None,
    )


def make_promotion(promotion_id=1, type=PromotionType.COMBO, conditions=(), discount_type=DiscountType.PERCENT,
                   discount_value=10, max_discount=None, min_order_value=0, **fields):
    return PromotionSnapshot(
        id=promotion_id,
        name=fields.pop("name", f"Promotion {promotion_id}"),
        type=type,
        discount_type=discount_type,
        discount_value=Decimal(str(discount_value)),
        max_discount=to_money(max_discount) if max_discount is not None else None,
        min_order_value=to_money(min_order_value),
        start_date=fields.pop("start_date", WINDOW_START),
        end_date=fields.pop("end_date", WINDOW_END),
        apply_scope=fields.pop("apply_scope", ApplyScope.GLOBAL),
        conditions=tuple(conditions),
        **fields,
    )


class FakeRepository:
    """In-memory stand-in for CatalogRepository."""
    def __init__(self, variants=(), promotions=(), user_groups=None):
        self.variants = {v.id: v for v in variants}
        self.promotions = list(promotions)
        self.user_groups = user_groups or {}
        self.variant_calls = []

    def find_variants_by_ids(self, ids):
        ids = list(ids)
        self.variant_calls.append(ids)
        return [self.variants[i] for i in ids if i in self.variants]

    def find_active_promotions(self, now):
        return sorted((p for p in self.promotions if p.is_running(now)), key=lambda p: p.id)

    def find_promotion_by_code(self, code):
        normalized = code.strip().lower()
        return next((p for p in self.promotions if p.code and p.code.lower() == normalized), None)

    def find_promotion_by_id(self, promotion_id):
        return next((p for p in self.promotions if p.id == promotion_id), None)

    def find_user_group_ids(self, user_id):
        return list(self.user_groups.get(user_id, []))
