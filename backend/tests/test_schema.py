from decimal import Decimal
from sqlalchemy import inspect
from helpers import add_product
import schema

def test_all_tables_exist(engine):
    inspector = inspect(engine)
    tables = inspector.get_table_names()
    required = [
        'products', 'product_variants', 'promotions', 'promotion_conditions',
        'promotion_branches', 'promotion_customer_groups', 'user_customer_groups',
    ]
    for t in required:
        assert t in tables, f"Missing table {t}"

def test_to_dict_serializes_money_as_float(db_session):
    add_product(db_session, 101, name="Coffee", price=Decimal("12.50"), variant_id=1)
    variant = db_session.get(schema.ProductVariant, 1)
    data = variant.to_dict()
    assert data["price"] == 12.5
    assert data["product_id"] == 101
    assert data["status"] == "active"
