"""Store CRUD with explicit name-uniqueness checks and guarded deletion.

Balance and Transaction rows reference stores with PROTECT, so a forced delete removes
them by hand (transactions, then balances, then the store) inside one atomic block.
"""
from django.db import transaction
from django.db.models import Count, Q, Sum
from django.db.models.functions import Coalesce

from .constants import DEFAULT_STORE_COLOR
from .errors import Conflict, StoreNotFound, ValidationError
from .logging import get_logger
from .models import Balance, Store, Transaction, TransactionType, User

log = get_logger(__name__)


def _with_totals(qs):
	return qs.annotate(
		user_count=Count("balances__user", distinct=True),
		total_balance=Coalesce(Sum("balances__amount"), 0),
	)


def _clean_name(name) -> str:
	if not isinstance(name, str) or not name.strip():
		raise ValidationError("Store name is required", {"required": ["name"], "received": name}, code="name_required")
	return name.strip()


def _assert_name_free(name: str, exclude_id: int | None = None):
	qs = Store.objects.filter(name=name)
	if exclude_id is not None:
		qs = qs.exclude(pk=exclude_id)
	if qs.exists():
		raise Conflict(
			"This store name is already in use",
			{"existing_store_name": name, "hint": "Choose a different store name"},
			code="duplicate_store_name",
		)


def list_stores():
	return list(_with_totals(Store.objects.all()).order_by("created_at", "id"))


def get_store(store_id: int) -> Store:
	store = _with_totals(Store.objects.filter(pk=store_id)).first()
	if store is None:
		raise StoreNotFound("Store not found", {"store_id": store_id})
	return store


@transaction.atomic
def create_store(name, description=None, color=None, create_balance_for_all_users: bool = False) -> Store:
	"""
	Insert a store; optionally fan out a zero balance row to every existing user
	"""
	name = _clean_name(name)
	_assert_name_free(name)
	store = Store.objects.create(name=name, description=description or None, color=color or DEFAULT_STORE_COLOR)

	if create_balance_for_all_users:
		Balance.objects.bulk_create(
			[Balance(user_id=uid, store=store, amount=0) for uid in User.objects.values_list("id", flat=True)]
		)

	log.info("store_created", store_id=store.id, name=name, fan_out=bool(create_balance_for_all_users))
	return get_store(store.id)


@transaction.atomic
def update_store(store_id: int, name, description=None, color=None) -> Store:
	store = Store.objects.select_for_update().filter(pk=store_id).first()
	if store is None:
		raise StoreNotFound("Store not found", {"store_id": store_id})
	name = _clean_name(name)
	_assert_name_free(name, exclude_id=store.pk)

	store.name = name
	store.description = description or None
	store.color = color or store.color
	store.save(update_fields=["name", "description", "color", "updated_at"])
	log.info("store_updated", store_id=store.id, name=name)
	return get_store(store.id)


def related_data(store_id: int) -> dict:
	balances = Balance.objects.filter(store_id=store_id).aggregate(
		count=Count("id"), total=Coalesce(Sum("amount"), 0)
	)
	return {
		"balance_records": balances["count"],
		"transactions": Transaction.objects.filter(store_id=store_id).count(),
		"total_balance": balances["total"],
	}


@transaction.atomic
def delete_store(store_id: int, force: bool = False) -> dict:
	"""
	Refuse while balances or transactions reference the store, unless force is set
	"""
	store = Store.objects.select_for_update().filter(pk=store_id).first()
	if store is None:
		raise StoreNotFound("Store not found", {"store_id": store_id})

	related = related_data(store.pk)
	has_data = related["balance_records"] > 0 or related["transactions"] > 0
	if has_data and not force:
		raise Conflict(
			"This store still has balances or transactions",
			{
				"store_name": store.name,
				"related_data": related,
				"hint": "Pass forceDelete=true to delete the related data as well",
				"warning": "A forced delete cannot be undone",
			},
			code="store_has_related_data",
		)

	deleted_transactions, _ = Transaction.objects.filter(store=store).delete()
	deleted_balances, _ = Balance.objects.filter(store=store).delete()
	store.delete()
	log.info(
		"store_deleted",
		store_id=store_id,
		forced=force,
		deleted_transactions=deleted_transactions,
		deleted_balances=deleted_balances,
	)
	return {
		"store_id": store_id,
		"store_name": store.name,
		"forced": force,
		"deleted_transactions": deleted_transactions,
		"deleted_balances": deleted_balances,
	}


def store_stats(store_id: int, recent: int = 10) -> dict:
	store = get_store(store_id)
	tx = Transaction.objects.filter(store=store).aggregate(
		count=Count("id"),
		deposits=Coalesce(Sum("amount", filter=Q(type=TransactionType.DEPOSIT)), 0),
		withdrawals=Coalesce(Sum("amount", filter=Q(type=TransactionType.WITHDRAW)), 0),
	)
	recent_rows = (
		Transaction.objects.filter(store=store)
		.select_related("user")
		.order_by("-created_at", "-id")[:recent]
	)
	return {
		"store_id": store.id,
		"store_name": store.name,
		"user_count": store.user_count,
		"total_balance": store.total_balance,
		"transaction_count": tx["count"],
		"total_deposits": tx["deposits"],
		"total_withdrawals": tx["withdrawals"],
		"recent_transactions": [
			{
				"id": t.id,
				"user_id": t.user_id,
				"username": t.user.username,
				"type": t.type,
				"amount": t.amount,
				"balance_before": t.balance_before,
				"balance_after": t.balance_after,
				"description": t.description,
				"created_at": t.created_at,
			}
			for t in recent_rows
		],
	}
