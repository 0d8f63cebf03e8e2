"""Ledger mutations: single deposit/withdraw, ordered batches, and demo seeding.

Every mutation locks the target balance row inside transaction.atomic, writes the new
amount and appends Transaction rows; nothing is visible to readers until commit.
"""
import time

from django.conf import settings
from django.db import transaction
from django.db.models import Max, Sum

from .constants import LOW_BALANCE_WARNING, max_batch_size, max_bulk_count
from .errors import InsufficientBalance, StoreNotFound, UserNotFound, ValidationError
from .logging import get_logger
from .models import Balance, Store, Transaction, TransactionType, User
from .validators import validate_amount, validate_description, validate_type

log = get_logger(__name__)


def ensure_ledger_user(user_id: int) -> User:
	"""
	A user takes part in the ledger once it owns at least one balance row
	"""
	user = User.objects.filter(pk=user_id).first()
	if user is None or not Balance.objects.filter(user_id=user_id).exists():
		raise UserNotFound(
			"No balance record exists for this user",
			{"user_id": user_id, "hint": "Provision the user (POST /api/demo/seed for the demo user)"},
		)
	return user


def ensure_store(store_id: int | None) -> Store | None:
	if store_id is None:
		return None
	store = Store.objects.filter(pk=store_id).first()
	if store is None:
		raise StoreNotFound("Store not found", {"store_id": store_id})
	return store


def _locked_balance(user: User, store: Store | None) -> Balance:
	"""
	Fetch (or lazily create at 0) the (user, store) row under a row lock. Call inside atomic.
	"""
	balance, _ = Balance.objects.select_for_update().get_or_create(user=user, store=store, defaults={"amount": 0})
	return balance


def _current_amount(user: User, store: Store | None) -> int:
	row = Balance.objects.filter(user=user, store=store).first()
	return row.amount if row else 0


def _signed(tx_type: str, amount: int) -> int:
	return amount if tx_type == TransactionType.DEPOSIT else -amount


def read_balance(user_id: int, store_id: int | None = None) -> dict:
	"""
	Current amount for one (user, store) row, or the sum across all of the user's rows.
	"""
	user = ensure_ledger_user(user_id)
	rows = Balance.objects.filter(user=user)
	if store_id is not None:
		ensure_store(store_id)
		rows = rows.filter(store_id=store_id)
	agg = rows.aggregate(total=Sum("amount"), updated_at=Max("updated_at"))
	return {
		"user_id": user.id,
		"username": user.username,
		"store_id": store_id,
		"amount": agg["total"] or 0,
		"updated_at": agg["updated_at"],
	}


def balance_breakdown(user_id: int) -> list[dict]:
	"""
	Per-row amounts for a user; store_id None is the unscoped row
	"""
	rows = Balance.objects.filter(user_id=user_id).select_related("store").order_by("store_id")
	return [
		{
			"store_id": b.store_id,
			"store_name": b.store.name if b.store else None,
			"amount": b.amount,
			"updated_at": b.updated_at,
		}
		for b in rows
	]


def apply_transaction(
	user_id: int,
	tx_type: str,
	amount: int,
	*,
	store_id: int | None = None,
	description: str | None = None,
) -> Transaction:
	"""
	Deposit into or withdraw from one balance row and append the matching Transaction.

	Rejections (invalid input, unknown user/store, insufficient balance) happen before any write.
	"""
	amount = validate_amount(amount)
	tx_type = validate_type(tx_type)
	description = validate_description(description)
	user = ensure_ledger_user(user_id)
	store = ensure_store(store_id)

	with transaction.atomic():
		balance = _locked_balance(user, store)
		current = balance.amount
		new_balance = current + _signed(tx_type, amount)
		if new_balance < 0:
			log.info("withdraw_rejected", user_id=user.id, store_id=store_id, current=current, amount=amount)
			raise InsufficientBalance(
				"Insufficient balance",
				current_balance=current,
				shortfall=amount - current,
				details={"requested_amount": amount},
			)

		balance.amount = new_balance
		balance.save(update_fields=["amount", "updated_at"])

		tx = Transaction.objects.create(
			user=user,
			store=store,
			type=tx_type,
			amount=amount,
			balance_before=current,
			balance_after=new_balance,
			description=description,
		)

	log.info(
		"transaction_applied",
		transaction_id=tx.id,
		user_id=user.id,
		store_id=store_id,
		type=tx_type,
		amount=amount,
		balance_before=current,
		balance_after=new_balance,
	)
	return tx


def _validate_operations(operations) -> list[dict]:
	if not isinstance(operations, list) or not operations:
		raise ValidationError("transactions must be a non-empty list", {"received_count": 0}, code="empty_batch")
	limit = max_batch_size()
	if len(operations) > limit:
		raise ValidationError(
			f"A batch may contain at most {limit} transactions",
			{"received_count": len(operations), "max_allowed": limit},
			code="batch_too_large",
		)

	cleaned = []
	errors = []
	for index, op in enumerate(operations):
		if not isinstance(op, dict):
			errors.append({"index": index, "field": None, "message": "operation must be an object"})
			continue
		entry = {}
		for field, check in (("type", validate_type), ("amount", validate_amount), ("description", validate_description)):
			try:
				entry[field] = check(op.get(field))
			except ValidationError as e:
				errors.append({"index": index, "field": field, "message": e.message, "received": op.get(field)})
		cleaned.append(entry)

	if errors:
		raise ValidationError(
			"One or more batch operations are invalid",
			{"validation_errors": errors, "invalid_indexes": sorted({e["index"] for e in errors})},
		)
	return cleaned


def apply_batch(
	user_id: int,
	operations: list,
	*,
	validate_only: bool = False,
	store_id: int | None = None,
) -> dict:
	"""
	Apply an ordered list of {type, amount, description?} to one balance row, all or nothing.

	Net sufficiency is checked before any write; with validate_only the projection is
	returned and nothing is persisted.
	"""
	started = time.perf_counter()
	ops = _validate_operations(operations)
	user = ensure_ledger_user(user_id)
	store = ensure_store(store_id)
	batch_id = f"batch_{user.id}_{int(time.time() * 1000)}"
	net = sum(_signed(op["type"], op["amount"]) for op in ops)

	with transaction.atomic():
		if validate_only:
			balance = None
			before = _current_amount(user, store)
		else:
			balance = _locked_balance(user, store)
			before = balance.amount
		after = before + net
		if after < 0:
			log.info("batch_rejected", batch_id=batch_id, user_id=user.id, current=before, net=net)
			raise InsufficientBalance(
				"Batch would leave the balance below zero",
				current_balance=before,
				shortfall=-after,
				details={"batch_id": batch_id, "total_net_change": net, "would_result_in": after},
			)

		summary = {
			"batch_id": batch_id,
			"user_id": user.id,
			"store_id": store_id,
			"transaction_count": len(ops),
			"balance_before": before,
			"balance_after": after,
			"total_net_change": net,
		}
		if validate_only:
			summary["validation_status"] = "OK"
			summary["processing_time"] = f"{time.perf_counter() - started:.2f}s"
			return summary

		running = before
		results = []
		for index, op in enumerate(ops):
			op_before = running
			running += _signed(op["type"], op["amount"])
			tx = Transaction.objects.create(
				user=user,
				store=store,
				type=op["type"],
				amount=op["amount"],
				balance_before=op_before,
				balance_after=running,
				description=op["description"] or f"Batch {index + 1}/{len(ops)}",
			)
			results.append({"id": tx.id, "type": tx.type, "amount": tx.amount, "balance_after": running})

		balance.amount = running
		balance.save(update_fields=["amount", "updated_at"])

	summary.update(
		processed_count=len(results),
		transaction_ids=[r["id"] for r in results],
		transactions_summary=results,
		processing_time=f"{time.perf_counter() - started:.2f}s",
	)
	log.info("batch_applied", batch_id=batch_id, user_id=user.id, count=len(results), balance_after=running)
	return summary


def bulk_operations(user_id: int, tx_type: str, amount, count, description: str | None = None) -> dict:
	"""
	Repeat one deposit/withdraw `count` times as a single batch
	"""
	tx_type = validate_type(tx_type)
	limit = max_bulk_count()
	if isinstance(count, bool) or not isinstance(count, int) or not 1 <= count <= limit:
		raise ValidationError(f"count must be between 1 and {limit}", {"received": count}, code="invalid_count")
	label = "Bulk deposit" if tx_type == TransactionType.DEPOSIT else "Bulk withdraw"
	operations = [
		{"type": tx_type, "amount": amount, "description": description or f"{label} {i + 1}/{count}"}
		for i in range(count)
	]
	return apply_batch(user_id, operations)


def project_net_change(user_id: int, net_change: int, store_id: int | None = None) -> dict:
	"""
	Pre-check a planned net change against one balance row without locking or writing
	"""
	user = ensure_ledger_user(user_id)
	store = ensure_store(store_id)
	current = _current_amount(user, store)
	projected = current + net_change
	result = {
		"user_id": user.id,
		"store_id": store_id,
		"current_balance": current,
		"net_change": net_change,
		"projected_balance": projected,
		"is_valid": projected >= 0,
		"warning": None,
	}
	if projected < 0:
		result["warning"] = "Insufficient balance for this change"
		result["shortfall"] = -projected
	elif projected < LOW_BALANCE_WARNING:
		result["warning"] = f"Balance would drop below {LOW_BALANCE_WARNING} medals"
	return result


class DemoServices:

	@staticmethod
	@transaction.atomic
	def seed_demo_user():
		"""
		Create (or fetch) the demo user and its unscoped starting balance
		"""
		user, _ = User.objects.get_or_create(
			username=settings.DEMO_USERNAME,
			defaults={"email": settings.DEMO_USER_EMAIL},
		)
		balance, created = Balance.objects.get_or_create(
			user=user, store=None, defaults={"amount": settings.DEMO_INITIAL_BALANCE}
		)
		if created:
			log.info("demo_user_seeded", user_id=user.id, amount=balance.amount)
		return user, balance
