"""Store CRUD and the deletion guard."""

import pytest

from core.errors import Conflict, StoreNotFound, ValidationError
from core.models import Balance, Store, Transaction
from core.services import apply_transaction
from core.stores import create_store, delete_store, get_store, list_stores, store_stats, update_store

pytestmark = pytest.mark.django_db


def test_create_trims_name_and_applies_default_color(db):
	store = create_store("  Akihabara  ")
	assert store.name == "Akihabara"
	assert store.color == "#3B82F6"
	assert store.user_count == 0
	assert store.total_balance == 0


def test_duplicate_names_conflict(db):
	create_store("Ikebukuro")
	with pytest.raises(Conflict):
		create_store("Ikebukuro")
	with pytest.raises(ValidationError):
		create_store("   ")


def test_fan_out_creates_zero_rows_for_every_user(demo_user, make_user):
	make_user("second", amount=10)
	store = create_store("Umeda", create_balance_for_all_users=True)

	assert Balance.objects.filter(store=store).count() == 2
	assert get_store(store.id).user_count == 2
	assert [s.id for s in list_stores()] == [store.id]


def test_update_checks_uniqueness_against_other_stores(db):
	a = create_store("Namba")
	b = create_store("Tenjin")

	with pytest.raises(Conflict):
		update_store(b.id, "Namba")

	same = update_store(a.id, "Namba", description="flagship", color="#000000")
	assert same.description == "flagship"
	assert same.color == "#000000"

	with pytest.raises(StoreNotFound):
		update_store(999, "Nowhere")


def test_delete_is_refused_while_related_data_exists(demo_user):
	store = create_store("Sakae", create_balance_for_all_users=True)
	apply_transaction(demo_user.id, "deposit", 40, store_id=store.id)

	with pytest.raises(Conflict) as exc:
		delete_store(store.id)
	related = exc.value.details["related_data"]
	assert related == {"balance_records": 1, "transactions": 1, "total_balance": 40}
	assert Store.objects.filter(pk=store.id).exists()


def test_force_delete_removes_store_and_dependents(demo_user):
	store = create_store("Sakae", create_balance_for_all_users=True)
	apply_transaction(demo_user.id, "deposit", 40, store_id=store.id)
	apply_transaction(demo_user.id, "deposit", 5)

	result = delete_store(store.id, force=True)

	assert result["deleted_transactions"] == 1
	assert result["deleted_balances"] == 1
	assert not Store.objects.filter(pk=store.id).exists()
	assert Transaction.objects.count() == 1
	assert Balance.objects.get(user=demo_user, store=None).amount == 1005


def test_empty_store_deletes_without_force(db):
	store = create_store("Empty")
	delete_store(store.id)
	with pytest.raises(StoreNotFound):
		get_store(store.id)


def test_store_stats_lists_recent_transactions_with_usernames(demo_user):
	store = create_store("Kyoto")
	for amount in range(1, 13):
		apply_transaction(demo_user.id, "deposit", amount, store_id=store.id)
	apply_transaction(demo_user.id, "withdraw", 8, store_id=store.id)

	stats = store_stats(store.id)
	assert stats["transaction_count"] == 13
	assert stats["total_deposits"] == 78
	assert stats["total_withdrawals"] == 8
	assert stats["total_balance"] == 70
	assert len(stats["recent_transactions"]) == 10
	assert stats["recent_transactions"][0]["type"] == "withdraw"
	assert stats["recent_transactions"][0]["username"] == "testuser"
