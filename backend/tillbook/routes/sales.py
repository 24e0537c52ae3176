# Overview: Flask API route for recording sales; parses input and returns JSON responses.

# backend/tillbook/routes/sales.py
"""Checkout endpoint: the HTTP face of sales_service.record_sale"""

from flask import Blueprint, current_app, jsonify, request

from ..errors import SaleError, ValidationError
from ..extensions import db
from ..identity import IDENTITY_EXTENSION_KEY
from ..services import sales_service
from ..services.sales_service import EngineOptions


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _error_response(exc: SaleError):
    return jsonify(exc.to_dict()), exc.http_status


@sales_bp.post("")
def record_sale_route():
    """
    Record a completed sale.

    Body:
        {
          "sale": {"customer_name", "customer_phone", "payment_method",
                   "payment_status", "discount_amount", "notes"},
          "items": [{"product_id", "quantity", "unit_price"}, ...]
        }

    The tenant comes from the identity provider, never from the body.
    """
    try:
        user = current_app.extensions[IDENTITY_EXTENSION_KEY].current_user()

        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Sale data and items are required")
        sale_data = data.get("sale") or {}
        if not isinstance(sale_data, dict):
            raise ValidationError("sale must be an object")
        items = data.get("items")
        if not isinstance(items, list) or not items:
            raise ValidationError("Sale data and items are required")

        result = sales_service.record_sale(
            db.session,
            user.tenant_id,
            user.id,
            items,
            customer=sale_data,
            payment_method=sale_data.get("payment_method"),
            payment_status=sale_data.get("payment_status"),
            discount_amount=sale_data.get("discount_amount", 0),
            notes=sale_data.get("notes"),
            options=EngineOptions.from_config(current_app.config),
        )

        return jsonify({"data": result.to_dict()}), 201

    except SaleError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to record sale")
        return jsonify({"error": "Internal server error", "code": "internal_error"}), 500
