# Overview: Error taxonomy shared by services and routes.

"""
Service-layer exceptions.

Services raise these; routes translate them into HTTP responses with
error_response(). Every error carries a human-readable message and an
optional details dict that is returned to the client unchanged.
"""

from __future__ import annotations

from flask import jsonify


class PosError(Exception):
    """Base class for all expected failures."""
    status_code = 500

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(PosError, ValueError):
    """400-level input problem."""
    status_code = 400


class NotFoundError(PosError):
    """Referenced entity (branch, product, user...) does not exist."""
    status_code = 404


class ConflictError(PosError):
    """409-level business rule conflict (e.g., duplicate username)."""
    status_code = 409


class InsufficientStockError(ConflictError):
    """Requested quantity exceeds the locked stock at the branch."""

    def __init__(
        self,
        *,
        product_id: int,
        product_name: str,
        requested_quantity: int,
        available_quantity: int,
    ):
        super().__init__(
            f"Insufficient stock for {product_name} (remaining: {available_quantity})",
            details={
                "product_id": product_id,
                "product_name": product_name,
                "requested_quantity": requested_quantity,
                "available_quantity": available_quantity,
            },
        )
        self.product_id = product_id
        self.available_quantity = available_quantity


class StorageError(PosError):
    """Database or infrastructure failure; the cause is logged, not returned."""
    status_code = 500


def error_response(exc: PosError):
    body = {"error": exc.message}
    if exc.details:
        body["details"] = exc.details
    return jsonify(body), exc.status_code
