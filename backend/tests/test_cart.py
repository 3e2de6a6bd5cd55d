import pytest
from decimal import Decimal
from errors import InvalidInput
from helpers import FakeRepository
from services.cart import aggregate_items, resolve_variants, build_line_items
from services.pricing_types import CartLine, ResolvedVariant

def _variant(variant_id, product_id, price):
    return ResolvedVariant(id=variant_id, product_id=product_id, unit_price=Decimal(price), product_name=f"P{product_id}")

def test_aggregate_merges_duplicate_variants_in_first_seen_order():
    aggregated = aggregate_items([CartLine(7, 2), CartLine(3, 1), CartLine(7, 3)])
    assert aggregated == {7: 5, 3: 1}
    assert list(aggregated) == [7, 3]

def test_aggregate_accepts_raw_dicts_and_clamps_quantity():
    aggregated = aggregate_items([
        {"variantId": 1, "quantity": 0},
        {"variant_id": 2},
        {"variantId": 1, "quantity": 4},
    ])
    assert aggregated == {1: 5, 2: 1}

def test_resolve_variants_loads_in_one_batch():
    repo = FakeRepository(variants=[_variant(1, 101, "100.00"), _variant(2, 202, "150.00")])
    found = resolve_variants(repo, [1, 2])
    assert set(found) == {1, 2}
    assert repo.variant_calls == [[1, 2]]

def test_resolve_variants_lists_every_missing_id():
    repo = FakeRepository(variants=[_variant(1, 101, "100.00")])
    with pytest.raises(InvalidInput) as exc:
        resolve_variants(repo, [1, 5, 7])

    assert exc.value.status_code == 400
    assert "5" in exc.value.message and "7" in exc.value.message
    assert [d["variantId"] for d in exc.value.details] == [5, 7]

def test_build_line_items_rounds_per_line():
    variants = {1: _variant(1, 101, "33.33"), 2: _variant(2, 202, "10")}
    lines = build_line_items({1: 3, 2: 2}, variants)

    assert [l.variant_id for l in lines] == [1, 2]
    assert lines[0].sub_total == Decimal("99.99")
    assert lines[0].total_amount == lines[0].sub_total
    assert lines[0].discount_total == Decimal("0.00")
    assert lines[1].unit_price == Decimal("10.00")
    assert lines[1].product_id == 202
