from flask import Blueprint, request, jsonify
from db import get_db
from errors import PricingError
from services.catalog import CatalogRepository
from services.pricing import PricingService
from services.pricing_types import PricingContext
from services.promotions import is_in_scope
from services.validation import validate_calculate_request, positive_int
from utils import utcnow

pricing_bp = Blueprint("pricing", __name__)


@pricing_bp.route("/pricing/calculate", methods=["POST"])
def calculate():
    """
    Prices a cart, applying combo offers and an optional coupon.
    ---
    Input (JSON):
        - items (list): [{variantId, quantity}], at least one entry.
        - promotionCode (str, optional): Coupon code to apply.
        - promotionId, branchId, addressId, userId (int, optional): Request context.
    Output (200):
        - The pricing summary: items, totals, appliedPromotions, context, meta.
    Errors:
        - 400: Invalid payload, unknown variants, or unusable coupon.
        - 409: Coupon targets a product that takes part in a combo.
    """
    pricing_request, errors = validate_calculate_request(request.get_json(silent=True))
    if errors:
        return jsonify({"error": "Invalid pricing request", "details": errors}), 400

    db = next(get_db())
    try:
        summary = PricingService(CatalogRepository(db)).calculate(pricing_request)
        return jsonify(summary.to_dict()), 200
    except PricingError as e:
        return jsonify(e.to_dict()), e.status_code
    finally:
        db.close()


@pricing_bp.route("/pricing/promotions", methods=["GET"])
def list_promotions():
    """
    Lists the promotions currently running for an optional branch / user.
    ---
    Input (Query Params):
        - branchId (int, optional)
        - userId (int, optional)
    Output (200):
        - promotions (list): Running promotions in scope, with their conditions.
    """
    context = PricingContext(
        branch_id=positive_int(request.args.get("branchId")),
        user_id=positive_int(request.args.get("userId")),
    )
    db = next(get_db())
    try:
        repository = CatalogRepository(db)
        group_ids = repository.find_user_group_ids(context.user_id)
        promotions = [
            p for p in repository.find_active_promotions(utcnow())
            if is_in_scope(p, context, group_ids)
        ]
        return jsonify({"promotions": [p.to_dict() for p in promotions]}), 200
    finally:
        db.close()
