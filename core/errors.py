"""Application errors with a consistent shape.

Each error carries a machine-readable code, an HTTP status, and optional details
(hints, offending values) that the API layer renders next to the code.
"""

from typing import Any


class MedalBankError(Exception):
	"""Base error for ledger, store and auth operations."""

	code = "error"
	status_code = 500

	def __init__(self, message: str, details: dict[str, Any] | None = None, code: str | None = None):
		self.message = message
		self.details = details or {}
		if code:
			self.code = code
		super().__init__(message)


class ValidationError(MedalBankError):
	code = "validation_error"
	status_code = 400


class InvalidAmount(ValidationError):
	code = "invalid_amount"


class NotFound(MedalBankError):
	code = "not_found"
	status_code = 404


class UserNotFound(NotFound):
	code = "user_not_found"


class StoreNotFound(NotFound):
	code = "store_not_found"


class InsufficientBalance(MedalBankError):
	"""Business-rule rejection; details always include the shortfall."""

	code = "insufficient_balance"
	status_code = 400

	def __init__(self, message: str, *, current_balance: int, shortfall: int, details: dict[str, Any] | None = None):
		self.current_balance = current_balance
		self.shortfall = shortfall
		merged = {"current_balance": current_balance, "shortfall": shortfall}
		merged.update(details or {})
		super().__init__(message, merged)


class Conflict(MedalBankError):
	code = "conflict"
	status_code = 409


class Unauthorized(MedalBankError):
	code = "unauthorized"
	status_code = 401


class RateLimited(MedalBankError):
	code = "rate_limited"
	status_code = 429


class StorageError(MedalBankError):
	code = "storage_error"
	status_code = 500
