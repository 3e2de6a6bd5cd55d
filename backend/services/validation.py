from typing import Any, List, Optional, Tuple

from services.pricing_types import CartLine, PricingContext, PricingRequest

CONTEXT_ID_FIELDS = (
    ("promotionId", "promotion_id"),
    ("branchId", "branch_id"),
    ("addressId", "address_id"),
    ("userId", "user_id"),
)


def positive_int(value: Any) -> Optional[int]:
    """Coerces ints and digit strings; returns None for anything else or < 1."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str) and value.strip().isdigit():
        number = int(value.strip())
        return number if number > 0 else None
    return None


def validate_calculate_request(data: Any) -> Tuple[Optional[PricingRequest], List[dict]]:
    """
    Checks a /pricing/calculate payload and converts it into a PricingRequest.

    Args:
        data: The decoded JSON body.

    Returns:
        (request, []) when valid, otherwise (None, errors) where each error is
        {"field": ..., "message": ...}.
    """
    errors = []
    if not isinstance(data, dict):
        return None, [{"field": "body", "message": "must be a JSON object"}]

    items = data.get("items")
    lines = []
    if not isinstance(items, list) or not items:
        errors.append({"field": "items", "message": "must be a non-empty list"})
    else:
        for i, item in enumerate(items):
            if not isinstance(item, dict):
                errors.append({"field": f"items[{i}]", "message": "must be an object"})
                continue
            variant_id = positive_int(item.get("variantId"))
            quantity = positive_int(item.get("quantity"))
            if variant_id is None:
                errors.append({"field": f"items[{i}].variantId", "message": "must be a positive integer"})
            if quantity is None:
                errors.append({"field": f"items[{i}].quantity", "message": "must be a positive integer"})
            if variant_id is not None and quantity is not None:
                lines.append(CartLine(variant_id=variant_id, quantity=quantity))

    context = PricingContext()
    code = data.get("promotionCode")
    if code is not None:
        if not isinstance(code, str):
            errors.append({"field": "promotionCode", "message": "must be a string"})
        else:
            context.promotion_code = code.strip() or None

    for field_name, attr in CONTEXT_ID_FIELDS:
        raw = data.get(field_name)
        if raw is None:
            continue
        value = positive_int(raw)
        if value is None:
            errors.append({"field": field_name, "message": "must be a positive integer"})
        else:
            setattr(context, attr, value)

    if errors:
        return None, errors
    return PricingRequest(items=tuple(lines), context=context), []
