import logging
from typing import Dict, Iterable, List

from errors import InvalidInput
from services.money import round_money
from services.pricing_types import CartLine, PricingLineItem, ResolvedVariant

logger = logging.getLogger(__name__)


def _line_fields(line):
    if isinstance(line, CartLine):
        return line.variant_id, line.quantity
    return line.get("variantId", line.get("variant_id")), line.get("quantity")


def aggregate_items(lines: Iterable) -> Dict[int, int]:
    """
    Collapses duplicate cart lines into a single quantity per variant.

    Quantities that are missing or not positive count as 1.

    Args:
        lines: CartLine instances or raw {"variantId", "quantity"} dicts.

    Returns:
        A mapping of variant id to total quantity, in first-seen order.
    """
    aggregated: Dict[int, int] = {}
    for line in lines:
        variant_id, quantity = _line_fields(line)
        variant_id = int(variant_id)
        quantity = max(1, int(quantity or 0))
        aggregated[variant_id] = aggregated.get(variant_id, 0) + quantity
    return aggregated


def resolve_variants(repository, variant_ids: Iterable[int]) -> Dict[int, ResolvedVariant]:
    """
    Loads every requested variant in one batch, failing closed.

    Raises:
        InvalidInput: If any id is unknown; lists every missing id.
    """
    variant_ids = list(variant_ids)
    variants = repository.find_variants_by_ids(variant_ids)
    found = {v.id: v for v in variants}
    missing = [vid for vid in variant_ids if vid not in found]
    if missing:
        raise InvalidInput(
            f"Variants not found: {', '.join(str(m) for m in missing)}",
            details=[{"field": "items", "variantId": m, "message": "variant does not exist"} for m in missing],
        )
    return found


def build_line_items(aggregated: Dict[int, int], variants: Dict[int, ResolvedVariant]) -> List[PricingLineItem]:
    lines = []
    for variant_id, quantity in aggregated.items():
        variant = variants[variant_id]
        unit_price = round_money(variant.unit_price)
        sub_total = round_money(unit_price * quantity)
        lines.append(PricingLineItem(
            variant_id=variant_id,
            product_id=variant.product_id,
            quantity=quantity,
            unit_price=unit_price,
            sub_total=sub_total,
            total_amount=sub_total,
            variant=variant,
        ))
    return lines
