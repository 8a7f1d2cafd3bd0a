# Overview: Flask API routes for buyer and seller profiles and their transactions.

"""
Buyer / Seller management routes

Both sides expose the same endpoints under their own prefix:

    GET  /api/<side>                                  profiles (?q= search)
    POST /api/<side>                                  create profile
    GET  /api/<side>/export                           profiles as .xlsx
    GET  /api/<side>/transactions                     (?q=, start=, end=)
    POST /api/<side>/transactions                     create transaction
    POST /api/<side>/transactions/<id>/settle         record a payment
"""

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth, require_section
from ..gateway import GatewayError
from ..services import export_service, party_service, transaction_service
from ..services.party_service import BUYERS, SELLERS, Side
from ..services.transaction_service import SettlementConflictError, TransactionNotFoundError
from ..validation import ValidationError, parse_date_field
from .helpers import load_failed, write_failed, xlsx_response


def _register_side_routes(bp: Blueprint, side: Side) -> Blueprint:

    @bp.get("")
    @require_auth
    @require_section(side.key)
    def list_profiles():
        try:
            profiles = party_service.list_profiles(side)
        except GatewayError as e:
            return load_failed(side.key, e)
        profiles = party_service.search_profiles(profiles, request.args.get("q"))
        return jsonify({side.key: [p.to_dict() for p in profiles]}), 200

    @bp.post("")
    @require_auth
    @require_section(side.key)
    def create_profile():
        payload = request.get_json(silent=True) or {}
        try:
            profile = party_service.create_profile(side, payload)
        except ValidationError as e:
            return jsonify({"error": str(e)}), 400
        except GatewayError as e:
            return write_failed(f"create {side.label.lower()}", e)
        except Exception:
            current_app.logger.exception("Failed to create %s", side.label.lower())
            return jsonify({"error": "Internal server error"}), 500
        return jsonify({"profile": profile.to_dict()}), 201

    @bp.get("/export")
    @require_auth
    @require_section(side.key)
    def export_profiles():
        try:
            profiles = party_service.list_profiles(side)
        except GatewayError as e:
            return write_failed(f"load {side.key} for export", e)
        profiles = party_service.search_profiles(profiles, request.args.get("q"))
        filename, data = export_service.export_profiles(side.key, profiles)
        return xlsx_response(filename, data)

    @bp.get("/transactions")
    @require_auth
    @require_section(side.key)
    def list_transactions():
        try:
            start = parse_date_field(request.args.get("start"), "start")
            end = parse_date_field(request.args.get("end"), "end")
        except ValidationError as e:
            return jsonify({"error": str(e)}), 400
        try:
            transactions = transaction_service.list_transactions(side, start, end)
        except GatewayError as e:
            return load_failed("transactions", e)
        transactions = transaction_service.search_transactions(transactions, request.args.get("q"))
        return jsonify({"transactions": [t.to_dict() for t in transactions]}), 200

    @bp.post("/transactions")
    @require_auth
    @require_section(side.key)
    def create_transaction():
        payload = request.get_json(silent=True) or {}
        try:
            transaction = transaction_service.create_transaction(side, payload)
        except ValidationError as e:
            return jsonify({"error": str(e)}), 400
        except GatewayError as e:
            return write_failed(f"create {side.label.lower()} transaction", e)
        except Exception:
            current_app.logger.exception("Failed to create %s transaction", side.label.lower())
            return jsonify({"error": "Internal server error"}), 500
        return jsonify({"transaction": transaction.to_dict()}), 201

    @bp.post("/transactions/<transaction_id>/settle")
    @require_auth
    @require_section(side.key)
    def settle_transaction(transaction_id: str):
        """Body: {"amount": <number>}. Adds amount to paid_amount."""
        payload = request.get_json(silent=True) or {}
        try:
            transaction = transaction_service.settle_transaction(side, transaction_id, payload.get("amount"))
        except SettlementConflictError as e:
            return jsonify({"error": str(e)}), 409
        except ValidationError as e:
            return jsonify({"error": str(e)}), 400
        except TransactionNotFoundError as e:
            return jsonify({"error": str(e)}), 404
        except GatewayError as e:
            return write_failed("update payment", e)
        except Exception:
            current_app.logger.exception("Failed to settle %s transaction %s", side.label.lower(), transaction_id)
            return jsonify({"error": "Internal server error"}), 500
        return jsonify({"transaction": transaction.to_dict()}), 200

    return bp


buyers_bp = _register_side_routes(Blueprint("buyers", __name__, url_prefix="/api/buyers"), BUYERS)
sellers_bp = _register_side_routes(Blueprint("sellers", __name__, url_prefix="/api/sellers"), SELLERS)
