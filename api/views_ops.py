"""Endpoints that move balances: single transactions, ordered batches and bulk repeats."""

from core.models import TransactionType
from core.services import apply_batch, apply_transaction, bulk_operations
from core.validators import coerce_positive_int, optional_positive_int

from .responses import ok, read_json, transaction_payload


def create_transaction(request):
	"""
	POST: Deposit into or withdraw from one balance row
	"""
	body = read_json(request)
	user_id = coerce_positive_int(body.get("user_id"), "user_id")
	store_id = optional_positive_int(body.get("store_id"), "store_id")

	tx = apply_transaction(
		user_id,
		body.get("type"),
		body.get("amount"),
		store_id=store_id,
		description=body.get("description"),
	)
	action = "Deposit" if tx.type == TransactionType.DEPOSIT else "Withdrawal"
	payload = transaction_payload(tx)
	payload["transaction_id"] = tx.id
	return ok(payload, f"{action} completed", status=201)


def batch_transactions(request):
	"""
	POST: Apply (or with validate_only, just check) an ordered list of operations
	"""
	body = read_json(request)
	user_id = coerce_positive_int(body.get("user_id"), "user_id")
	store_id = optional_positive_int(body.get("store_id"), "store_id")
	validate_only = bool(body.get("validate_only", False))

	result = apply_batch(user_id, body.get("transactions"), validate_only=validate_only, store_id=store_id)
	if validate_only:
		return ok(result, "Batch validated")
	return ok(result, "Batch completed")


def _bulk(request, tx_type: str):
	body = read_json(request)
	user_id = coerce_positive_int(body.get("user_id"), "user_id")
	return bulk_operations(user_id, tx_type, body.get("amount"), body.get("count"), body.get("description"))


def bulk_deposit(request):
	"""
	POST: Repeat one deposit `count` times as a single batch
	"""
	return ok(_bulk(request, TransactionType.DEPOSIT), "Bulk deposit completed")


def bulk_withdraw(request):
	"""
	POST: Repeat one withdrawal `count` times as a single batch
	"""
	return ok(_bulk(request, TransactionType.WITHDRAW), "Bulk withdrawal completed")
