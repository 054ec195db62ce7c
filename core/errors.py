"""
Error taxonomy shared by the stores, services and routes.

Ownership and existence failures share one type so callers cannot test for
other users' listings or bids.
"""
from __future__ import annotations


class AppError(Exception):
    """Base class for application failures the HTTP layer knows how to report."""

    public_message = "Something went wrong, please try again."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.public_message)
        self.message = message or self.public_message


class ValidationError(AppError):
    public_message = "Invalid request."


class InvalidAmount(ValidationError):
    public_message = "Minimum bid is $5.00 per week"


class InvalidAutoBidCeiling(ValidationError):
    public_message = "max_auto_bid must be greater than or equal to weekly_bid_amount"


class InvalidPosition(ValidationError):
    public_message = "Invalid target position. Must be between 1 and 5."


class NotFound(AppError):
    public_message = "Not found or not authorized."


NotAuthorized = NotFound


class PersistenceError(AppError):
    """Storage failure. The message is generic; details go to the log only."""


class MarketRecalculationError(PersistenceError):
    public_message = "Market is temporarily unavailable, please try again."


class PaymentError(AppError):
    public_message = "Payment could not be processed."

    def __init__(self, message: str | None = None, upstream: bool = False):
        super().__init__(message)
        self.upstream = upstream


__all__ = [
    "AppError",
    "ValidationError",
    "InvalidAmount",
    "InvalidAutoBidCeiling",
    "InvalidPosition",
    "NotFound",
    "NotAuthorized",
    "PersistenceError",
    "MarketRecalculationError",
    "PaymentError",
]
