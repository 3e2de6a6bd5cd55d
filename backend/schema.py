from sqlalchemy import Column, Integer, String, Numeric, Boolean, Text, ForeignKey, DateTime, Enum
from sqlalchemy.orm import relationship
from base import Base
from services.pricing_types import (
    ApplyScope,
    ComboType,
    ConditionRole,
    CouponType,
    DiscountType,
    PromotionType,
)


def _enum(enum_cls):
    return Enum(enum_cls, native_enum=False, length=32, values_callable=lambda e: [m.value for m in e])


class Product(Base):
    __tablename__ = 'products'
    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    image = Column(String(500))
    original_price = Column(Numeric(12, 2), nullable=False, default=0)
    status = Column(String(20), nullable=False, default="active")

    variants = relationship("ProductVariant", back_populates="product")


class ProductVariant(Base):
    __tablename__ = 'product_variants'
    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey('products.id', ondelete="CASCADE"), nullable=False)
    name = Column(String(255))
    price = Column(Numeric(12, 2), nullable=False)
    image = Column(String(500))
    status = Column(String(20), nullable=False, default="active")

    product = relationship("Product", back_populates="variants")


class Promotion(Base):
    __tablename__ = 'promotions'
    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    code = Column(String(100), unique=True)
    description = Column(Text)
    type = Column(_enum(PromotionType), nullable=False)
    combo_type = Column(_enum(ComboType))
    coupon_type = Column(_enum(CouponType))
    discount_type = Column(_enum(DiscountType), nullable=False, default=DiscountType.PERCENT)
    discount_value = Column(Numeric(10, 2), nullable=False, default=0)
    max_discount = Column(Numeric(10, 2))
    min_order_value = Column(Numeric(10, 2), nullable=False, default=0)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    apply_scope = Column(_enum(ApplyScope), nullable=False, default=ApplyScope.GLOBAL)
    is_active = Column(Boolean, nullable=False, default=True)

    conditions = relationship(
        "PromotionCondition",
        back_populates="promotion",
        order_by="PromotionCondition.id",
        cascade="all, delete-orphan",
    )
    branches = relationship("PromotionBranch", cascade="all, delete-orphan")
    customer_groups = relationship("PromotionCustomerGroup", cascade="all, delete-orphan")


class PromotionCondition(Base):
    __tablename__ = 'promotion_conditions'
    id = Column(Integer, primary_key=True)
    promotion_id = Column(Integer, ForeignKey('promotions.id', ondelete="CASCADE"), nullable=False)
    product_id = Column(Integer, ForeignKey('products.id', ondelete="CASCADE"), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    role = Column(_enum(ConditionRole), nullable=False)

    promotion = relationship("Promotion", back_populates="conditions")
    product = relationship("Product")


class PromotionBranch(Base):
    __tablename__ = 'promotion_branches'
    id = Column(Integer, primary_key=True)
    promotion_id = Column(Integer, ForeignKey('promotions.id', ondelete="CASCADE"), nullable=False)
    branch_id = Column(Integer, nullable=False)


class PromotionCustomerGroup(Base):
    __tablename__ = 'promotion_customer_groups'
    id = Column(Integer, primary_key=True)
    promotion_id = Column(Integer, ForeignKey('promotions.id', ondelete="CASCADE"), nullable=False)
    customer_group_id = Column(Integer, nullable=False)


class UserCustomerGroup(Base):
    __tablename__ = 'user_customer_groups'
    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, nullable=False, index=True)
    customer_group_id = Column(Integer, nullable=False)
