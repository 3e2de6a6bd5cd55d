from datetime import timedelta
from decimal import Decimal
import schema
from helpers import NOW, add_product, add_product_combo, add_coupon, add_promotion
from services.catalog import CatalogRepository
from services.pricing_types import ApplyScope, ConditionRole, CouponType, PromotionType

def test_find_variants_by_ids_joins_product(db_session):
    add_product(db_session, 101, name="Coffee", price=100, variant_id=1, image="coffee.png")
    repo = CatalogRepository(db_session)

    variants = repo.find_variants_by_ids([1, 999])
    assert len(variants) == 1
    v = variants[0]
    assert v.id == 1
    assert v.product_id == 101
    assert v.unit_price == Decimal("100.00")
    assert v.product_name == "Coffee"
    assert v.variant_name == "Coffee - Default"
    # variant has no image of its own; falls back to the product's
    assert v.product_image == "coffee.png"

def test_find_variants_by_ids_empty(db_session):
    assert CatalogRepository(db_session).find_variants_by_ids([]) == []

def test_find_active_promotions_filters_window_and_flag(db_session):
    add_product(db_session, 101, price=100)
    add_product_combo(db_session, 5, [(101, 1)])
    add_product_combo(db_session, 2, [(101, 2)])
    add_product_combo(db_session, 3, [(101, 1)], is_active=False)
    add_product_combo(db_session, 4, [(101, 1)], start=NOW - timedelta(days=10), end=NOW - timedelta(days=1))
    add_product_combo(db_session, 6, [(101, 1)], start=NOW + timedelta(days=1), end=NOW + timedelta(days=10))

    promotions = CatalogRepository(db_session).find_active_promotions(NOW)
    assert [p.id for p in promotions] == [2, 5]
    assert promotions[0].conditions[0].quantity == 2
    assert promotions[0].conditions[0].role == ConditionRole.BUY

def test_validity_window_bounds_are_inclusive(db_session):
    add_product(db_session, 101, price=100)
    add_product_combo(db_session, 1, [(101, 1)], start=NOW, end=NOW + timedelta(days=1))
    add_product_combo(db_session, 2, [(101, 1)], start=NOW - timedelta(days=1), end=NOW)
    add_product_combo(db_session, 3, [(101, 1)], start=NOW + timedelta(seconds=1), end=NOW + timedelta(days=1))
    repo = CatalogRepository(db_session)

    assert [p.id for p in repo.find_active_promotions(NOW)] == [1, 2]
    # naive instants are read as UTC
    assert [p.id for p in repo.find_active_promotions(NOW.replace(tzinfo=None))] == [1, 2]

def test_codes_differing_only_by_case_resolve_to_lowest_id(db_session):
    add_product(db_session, 202, price=150)
    add_coupon(db_session, 20, "PROMO", product_ids=[202])
    add_coupon(db_session, 10, "promo", product_ids=[202])
    repo = CatalogRepository(db_session)

    assert repo.find_promotion_by_code("Promo").id == 10
    assert repo.find_promotion_by_code("PROMO").id == 10

def test_find_promotion_by_code_is_case_insensitive(db_session):
    add_product(db_session, 202, name="Tea", price=150, image="tea.png")
    add_coupon(db_session, 100, "SAVE20", product_ids=[202], discount_value=20)
    repo = CatalogRepository(db_session)

    coupon = repo.find_promotion_by_code("  save20 ")
    assert coupon is not None
    assert coupon.id == 100
    assert coupon.type == PromotionType.COUPON
    assert coupon.coupon_type == CouponType.SPECIFIC_PRODUCTS
    assert coupon.discount_value == Decimal("20.00")
    condition = coupon.conditions[0]
    assert condition.role == ConditionRole.APPLIES_TO
    assert condition.product_name == "Tea"
    assert condition.product_image == "tea.png"
    assert condition.product_price == Decimal("150.00")

    assert repo.find_promotion_by_code("NOPE") is None
    assert repo.find_promotion_by_code("   ") is None

def test_find_promotion_by_id(db_session):
    add_product(db_session, 202, price=150)
    add_coupon(db_session, 100, "SAVE20", product_ids=[202])
    repo = CatalogRepository(db_session)
    assert repo.find_promotion_by_id(100).code == "SAVE20"
    assert repo.find_promotion_by_id(404) is None

def test_scope_targets_are_materialized(db_session):
    add_product(db_session, 101, price=100)
    add_promotion(
        db_session, 1, type=PromotionType.COMBO, discount_value=5,
        apply_scope=ApplyScope.BRANCH, branch_ids=[3, 4],
        conditions=[(101, 1, ConditionRole.BUY)],
    )
    add_promotion(
        db_session, 2, type=PromotionType.COMBO, discount_value=5,
        apply_scope=ApplyScope.CUSTOMER_GROUP, group_ids=[9],
        conditions=[(101, 1, ConditionRole.BUY)],
    )
    by_id = {p.id: p for p in CatalogRepository(db_session).find_active_promotions(NOW)}
    assert by_id[1].apply_scope == ApplyScope.BRANCH
    assert sorted(by_id[1].branch_ids) == [3, 4]
    assert by_id[2].customer_group_ids == (9,)

def test_find_user_group_ids(db_session):
    db_session.add_all([
        schema.UserCustomerGroup(user_id=42, customer_group_id=9),
        schema.UserCustomerGroup(user_id=42, customer_group_id=11),
        schema.UserCustomerGroup(user_id=7, customer_group_id=1),
    ])
    db_session.commit()
    repo = CatalogRepository(db_session)
    assert sorted(repo.find_user_group_ids(42)) == [9, 11]
    assert repo.find_user_group_ids(None) == []
