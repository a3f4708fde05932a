# Overview: Domain exception taxonomy shared by services and routes.

"""
Every domain error carries a human readable message, an optional ``details``
dict for the JSON body, and the HTTP status the route layer answers with.

Routes catch ``TokoError`` and answer with ``exc.to_dict()`` and
``exc.status_code``; anything else is logged and answered with a generic 500.
"""

from __future__ import annotations


class TokoError(Exception):
    """Base class for errors surfaced to API callers."""
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


# Authentication / authorization

class AuthenticationFailure(TokoError):
    """Invalid credentials or expired session."""
    status_code = 401


class TenantInactive(TokoError):
    """The caller's tenant has been deactivated."""
    status_code = 403


class RoleForbidden(TokoError):
    status_code = 403


class TransientLookupError(TokoError):
    """Backend unreachable while resolving a session, role or tenant."""
    status_code = 503


class LookupFailed(TokoError):
    """A session, user or tenant record expected to exist is missing."""
    status_code = 404


# Cart / checkout

class StockExceeded(TokoError):
    status_code = 409


class InvalidQuantity(TokoError):
    status_code = 400


class CartItemNotFound(TokoError):
    status_code = 404


class EmptyCart(TokoError):
    status_code = 400


class InsufficientPayment(TokoError):
    status_code = 400


class InvalidPaymentMethod(TokoError):
    status_code = 400


class CheckoutStateError(TokoError):
    """Operation not allowed in the checkout session's current state."""
    status_code = 409


class CommitFailed(TokoError):
    """The sale could not be committed; nothing was persisted."""
    status_code = 500


class CommitTimeout(CommitFailed):
    status_code = 504


# Generic CRUD

class NotFound(TokoError):
    status_code = 404


class ValidationError(TokoError):
    status_code = 400


class ConflictError(TokoError):
    status_code = 409
