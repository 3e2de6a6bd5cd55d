from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional, Tuple

from services.money import ZERO, money_to_json
from utils import as_utc


class PromotionType(str, Enum):
    COMBO = "COMBO"
    COUPON = "COUPON"


class ComboType(str, Enum):
    PRODUCT_COMBO = "PRODUCT_COMBO"
    BUY_X_GET_Y = "BUY_X_GET_Y"


class CouponType(str, Enum):
    ORDER_TOTAL = "ORDER_TOTAL"
    SPECIFIC_PRODUCTS = "SPECIFIC_PRODUCTS"


class DiscountType(str, Enum):
    PERCENT = "PERCENT"
    FIXED = "FIXED"


class ConditionRole(str, Enum):
    BUY = "BUY"
    GET = "GET"
    APPLIES_TO = "APPLIES_TO"


class ApplyScope(str, Enum):
    GLOBAL = "GLOBAL"
    BRANCH = "BRANCH"
    CUSTOMER_GROUP = "CUSTOMER_GROUP"


class PromotionLevel(str, Enum):
    AUTO = "AUTO"
    COUPON = "COUPON"


def _opt_money(value: Optional[Decimal]):
    return money_to_json(value) if value is not None else None


def _enum_value(value: Optional[Enum]):
    return value.value if value is not None else None


# --- request side ---

@dataclass(frozen=True)
class CartLine:
    variant_id: int
    quantity: int = 1


@dataclass
class PricingContext:
    promotion_code: Optional[str] = None
    promotion_id: Optional[int] = None
    branch_id: Optional[int] = None
    address_id: Optional[int] = None
    user_id: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "promotionCode": self.promotion_code,
            "promotionId": self.promotion_id,
            "branchId": self.branch_id,
            "addressId": self.address_id,
            "userId": self.user_id,
        }


@dataclass(frozen=True)
class PricingRequest:
    items: Tuple[CartLine, ...]
    context: PricingContext = field(default_factory=PricingContext)


# --- read models returned by the catalog port ---

@dataclass(frozen=True)
class ResolvedVariant:
    id: int
    product_id: int
    unit_price: Decimal
    product_name: str
    variant_name: Optional[str] = None
    product_image: Optional[str] = None


@dataclass(frozen=True)
class ConditionSnapshot:
    """
    One product requirement of a promotion.

    The product fields describe the condition's product as stored in the
    catalog, which may not be in the cart at all.
    """
    product_id: int
    role: ConditionRole
    quantity: int = 1
    product_name: Optional[str] = None
    product_image: Optional[str] = None
    product_price: Optional[Decimal] = None

    def to_dict(self) -> dict:
        return {
            "productId": self.product_id,
            "role": self.role.value,
            "quantity": self.quantity,
            "productName": self.product_name,
            "productImage": self.product_image,
            "productPrice": _opt_money(self.product_price),
        }


@dataclass(frozen=True)
class PromotionSnapshot:
    id: int
    name: str
    type: PromotionType
    discount_type: DiscountType
    discount_value: Decimal
    start_date: datetime
    end_date: datetime
    combo_type: Optional[ComboType] = None
    coupon_type: Optional[CouponType] = None
    code: Optional[str] = None
    description: Optional[str] = None
    max_discount: Optional[Decimal] = None
    min_order_value: Decimal = ZERO
    is_active: bool = True
    apply_scope: ApplyScope = ApplyScope.GLOBAL
    conditions: Tuple[ConditionSnapshot, ...] = ()
    branch_ids: Tuple[int, ...] = ()
    customer_group_ids: Tuple[int, ...] = ()

    def conditions_with_role(self, role: ConditionRole) -> List[ConditionSnapshot]:
        return [c for c in self.conditions if c.role == role]

    def product_ids(self) -> set:
        return {c.product_id for c in self.conditions}

    def is_running(self, now: datetime) -> bool:
        return self.is_active and as_utc(self.start_date) <= as_utc(now) <= as_utc(self.end_date)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "comboType": _enum_value(self.combo_type),
            "couponType": _enum_value(self.coupon_type),
            "code": self.code,
            "description": self.description,
            "discountType": self.discount_type.value,
            "discountValue": float(self.discount_value),
            "maxDiscount": _opt_money(self.max_discount),
            "minOrderValue": money_to_json(self.min_order_value),
            "startDate": as_utc(self.start_date).isoformat(),
            "endDate": as_utc(self.end_date).isoformat(),
            "applyScope": self.apply_scope.value,
            "conditions": [c.to_dict() for c in self.conditions],
        }


# --- result model ---

@dataclass
class AppliedPromotionRef:
    promotion_id: int
    level: PromotionLevel
    amount: Decimal

    def to_dict(self) -> dict:
        return {
            "promotionId": self.promotion_id,
            "level": self.level.value,
            "amount": money_to_json(self.amount),
        }


@dataclass
class PricingLineItem:
    variant_id: int
    product_id: int
    quantity: int
    unit_price: Decimal
    sub_total: Decimal
    variant: ResolvedVariant
    discount_total: Decimal = ZERO
    total_amount: Decimal = ZERO
    is_in_combo: bool = False
    is_gift: bool = False
    applied_promotions: List[AppliedPromotionRef] = field(default_factory=list)

    @property
    def remaining(self) -> Decimal:
        """Amount of this line still available for discounting."""
        return max(ZERO, self.sub_total - self.discount_total)

    def to_dict(self) -> dict:
        return {
            "variantId": self.variant_id,
            "productId": self.product_id,
            "quantity": self.quantity,
            "unitPrice": money_to_json(self.unit_price),
            "subTotal": money_to_json(self.sub_total),
            "discountTotal": money_to_json(self.discount_total),
            "totalAmount": money_to_json(self.total_amount),
            "isInCombo": self.is_in_combo,
            "isGift": self.is_gift,
            "appliedPromotions": [ref.to_dict() for ref in self.applied_promotions],
            "variant": {
                "id": self.variant.id,
                "name": self.variant.variant_name or self.variant.product_name,
                "image": self.variant.product_image,
                "productId": self.variant.product_id,
                "productName": self.variant.product_name,
            },
        }


@dataclass
class AdjustmentLine:
    product_id: int
    variant_id: int
    quantity: int
    discount_amount: Decimal = ZERO
    is_gift: bool = False

    def to_dict(self) -> dict:
        return {
            "productId": self.product_id,
            "variantId": self.variant_id,
            "quantity": self.quantity,
            "discountAmount": money_to_json(self.discount_amount),
            "isGift": self.is_gift,
        }


@dataclass
class PromotionSuggestion:
    product_id: int
    required_quantity: int
    current_quantity: int
    message: str = ""
    product_name: Optional[str] = None
    product_image: Optional[str] = None
    product_price: Optional[Decimal] = None
    auto_add: bool = True

    @property
    def missing_quantity(self) -> int:
        return max(0, self.required_quantity - self.current_quantity)

    def to_dict(self) -> dict:
        return {
            "productId": self.product_id,
            "productName": self.product_name,
            "productImage": self.product_image,
            "productPrice": _opt_money(self.product_price),
            "requiredQuantity": self.required_quantity,
            "currentQuantity": self.current_quantity,
            "missingQuantity": self.missing_quantity,
            "message": self.message,
            "autoAdd": self.auto_add,
        }


@dataclass
class AdjustmentMetadata:
    times_applied: int
    base_amount: Decimal
    discount_type: DiscountType
    discount_value: Decimal
    gift_base_amount: Optional[Decimal] = None
    max_discount: Optional[Decimal] = None

    def to_dict(self) -> dict:
        return {
            "timesApplied": self.times_applied,
            "baseAmount": money_to_json(self.base_amount),
            "giftBaseAmount": _opt_money(self.gift_base_amount),
            "discountType": self.discount_type.value,
            "discountValue": float(self.discount_value),
            "maxDiscount": _opt_money(self.max_discount),
        }


@dataclass
class AppliedPromotion:
    promotion_id: int
    promotion_name: str
    promotion_type: PromotionType
    level: PromotionLevel
    amount: Decimal = ZERO
    combo_type: Optional[ComboType] = None
    coupon_type: Optional[CouponType] = None
    description: Optional[str] = None
    metadata: Optional[AdjustmentMetadata] = None
    items: List[AdjustmentLine] = field(default_factory=list)
    suggestions: List[PromotionSuggestion] = field(default_factory=list)

    def is_reportable(self) -> bool:
        """Only promotions that discounted something or can be unlocked are reported."""
        return self.amount > ZERO or bool(self.suggestions)

    def to_dict(self) -> dict:
        out = {
            "promotionId": self.promotion_id,
            "promotionName": self.promotion_name,
            "promotionType": self.promotion_type.value,
            "level": self.level.value,
            "comboType": _enum_value(self.combo_type),
            "couponType": _enum_value(self.coupon_type),
            "description": self.description,
            "amount": money_to_json(self.amount),
            "metadata": self.metadata.to_dict() if self.metadata else None,
            "items": [item.to_dict() for item in self.items],
        }
        if self.suggestions:
            out["suggestions"] = [s.to_dict() for s in self.suggestions]
        return out


@dataclass
class PricingTotals:
    sub_total: Decimal = ZERO
    auto_discount_total: Decimal = ZERO
    coupon_discount_total: Decimal = ZERO
    discount_total: Decimal = ZERO
    shipping_fee: Decimal = ZERO
    tax_total: Decimal = ZERO
    total_amount: Decimal = ZERO

    def to_dict(self) -> dict:
        return {
            "subTotal": money_to_json(self.sub_total),
            "autoDiscountTotal": money_to_json(self.auto_discount_total),
            "couponDiscountTotal": money_to_json(self.coupon_discount_total),
            "discountTotal": money_to_json(self.discount_total),
            "shippingFee": money_to_json(self.shipping_fee),
            "taxTotal": money_to_json(self.tax_total),
            "totalAmount": money_to_json(self.total_amount),
        }


@dataclass
class PricingSummary:
    items: List[PricingLineItem]
    totals: PricingTotals
    applied_promotions: List[AppliedPromotion]
    context: PricingContext

    def line(self, variant_id: int) -> PricingLineItem:
        return next(item for item in self.items if item.variant_id == variant_id)

    def to_dict(self) -> Dict:
        return {
            "items": [item.to_dict() for item in self.items],
            "totals": self.totals.to_dict(),
            "appliedPromotions": [p.to_dict() for p in self.applied_promotions],
            "context": self.context.to_dict(),
            "meta": {
                "totalAutoDiscount": money_to_json(self.totals.auto_discount_total),
                "totalCouponDiscount": money_to_json(self.totals.coupon_discount_total),
            },
        }
