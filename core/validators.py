"""Input checks shared by services and views.

Each helper returns the cleaned value or raises a core.errors.ValidationError subclass.
"""

from datetime import date, datetime

from .constants import DESCRIPTION_FORBIDDEN_CHARS, DESCRIPTION_MAX_LENGTH, max_transaction_amount
from .errors import InvalidAmount, ValidationError
from .models import TransactionType


def coerce_positive_int(value, field: str) -> int:
	"""
	Accept ints and digit strings (query params); reject bools, floats and anything <= 0
	"""
	if isinstance(value, bool) or value is None or value == "":
		raise ValidationError(f"{field} is required and must be a positive integer", {"field": field, "received": value})
	if isinstance(value, str):
		value = value.strip()
		if not value.isdigit():
			raise ValidationError(f"{field} must be a positive integer", {"field": field, "received": value})
		value = int(value)
	if not isinstance(value, int) or value <= 0:
		raise ValidationError(f"{field} must be a positive integer", {"field": field, "received": value})
	return value


def optional_positive_int(value, field: str) -> int | None:
	if value is None or value == "":
		return None
	return coerce_positive_int(value, field)


def validate_type(value) -> str:
	if value not in TransactionType.values:
		raise ValidationError(
			'type must be "deposit" or "withdraw"',
			{"received": value, "valid_types": list(TransactionType.values)},
			code="invalid_type",
		)
	return value


def validate_amount(value) -> int:
	if isinstance(value, bool) or not isinstance(value, int):
		raise InvalidAmount("amount must be an integer number of medals", {"received": value})
	if value <= 0:
		raise InvalidAmount("amount must be at least 1", {"received": value, "min": 1})
	ceiling = max_transaction_amount()
	if value > ceiling:
		raise InvalidAmount("amount exceeds the per-transaction ceiling", {"received": value, "max": ceiling})
	return value


def validate_description(value) -> str:
	if value is None:
		return ""
	if not isinstance(value, str):
		raise ValidationError("description must be a string", {"received": value}, code="invalid_description")
	if len(value) > DESCRIPTION_MAX_LENGTH:
		raise ValidationError(
			"description is too long",
			{"received_length": len(value), "max_length": DESCRIPTION_MAX_LENGTH},
			code="invalid_description",
		)
	if any(ch in value for ch in DESCRIPTION_FORBIDDEN_CHARS):
		raise ValidationError(
			"description contains forbidden characters",
			{"forbidden_chars": list(DESCRIPTION_FORBIDDEN_CHARS)},
			code="invalid_description",
		)
	return value


def parse_day(value, field: str) -> date | None:
	"""
	Strict YYYY-MM-DD; time of day is never accepted
	"""
	if value is None or value == "":
		return None
	if not isinstance(value, str) or len(value) != 10:
		raise ValidationError(f"{field} must be formatted YYYY-MM-DD", {"received": value, "example": "2024-01-01"}, code="invalid_date")
	try:
		return datetime.strptime(value, "%Y-%m-%d").date()
	except ValueError:
		raise ValidationError(f"{field} is not a valid date", {"received": value, "example": "2024-01-01"}, code="invalid_date")
