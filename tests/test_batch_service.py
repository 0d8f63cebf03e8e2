"""Ordered all-or-nothing batches, bulk repeats and net-change projection."""

import pytest
from django.db import DatabaseError

from core.errors import InsufficientBalance, ValidationError
from core.models import Balance, Transaction
from core.services import apply_batch, bulk_operations, project_net_change, read_balance

pytestmark = pytest.mark.django_db


def test_batch_applies_in_order_with_running_balances(demo_user):
	ops = [
		{"type": "deposit", "amount": 500},
		{"type": "withdraw", "amount": 200},
		{"type": "deposit", "amount": 300},
	]
	result = apply_batch(demo_user.id, ops)

	assert result["balance_before"] == 1000
	assert result["balance_after"] == 1600
	assert result["total_net_change"] == 600
	assert result["processed_count"] == 3
	assert read_balance(demo_user.id)["amount"] == 1600

	rows = list(Transaction.objects.filter(pk__in=result["transaction_ids"]).order_by("id"))
	assert [r.balance_after for r in rows] == [1500, 1300, 1600]
	assert [r.description for r in rows] == ["Batch 1/3", "Batch 2/3", "Batch 3/3"]


def test_batch_with_negative_net_is_rejected_entirely(make_user):
	user = make_user("poor", amount=100)
	ops = [{"type": "deposit", "amount": 500}, {"type": "withdraw", "amount": 700}]

	with pytest.raises(InsufficientBalance) as exc:
		apply_batch(user.id, ops)

	assert exc.value.shortfall == 100
	assert Balance.objects.get(user=user).amount == 100
	assert not Transaction.objects.filter(user=user).exists()


def test_validate_only_projects_without_writing(demo_user):
	ops = [{"type": "withdraw", "amount": 400}, {"type": "deposit", "amount": 50}]
	result = apply_batch(demo_user.id, ops, validate_only=True)

	assert result["validation_status"] == "OK"
	assert result["balance_after"] == 650
	assert not Transaction.objects.exists()
	assert read_balance(demo_user.id)["amount"] == 1000


def test_every_invalid_operation_is_reported(demo_user):
	ops = [
		{"type": "deposit", "amount": 0},
		{"type": "deposit", "amount": 10},
		{"type": "refund", "amount": 5},
		"nope",
	]
	with pytest.raises(ValidationError) as exc:
		apply_batch(demo_user.id, ops)

	assert exc.value.details["invalid_indexes"] == [0, 2, 3]
	assert not Transaction.objects.exists()


def test_empty_and_oversized_batches(demo_user, settings):
	with pytest.raises(ValidationError) as exc:
		apply_batch(demo_user.id, [])
	assert exc.value.code == "empty_batch"

	settings.MEDALBANK_MAX_BATCH_SIZE = 3
	ops = [{"type": "deposit", "amount": 1}] * 4
	with pytest.raises(ValidationError) as exc:
		apply_batch(demo_user.id, ops)
	assert exc.value.code == "batch_too_large"


def test_failure_mid_batch_rolls_back_everything(demo_user, monkeypatch):
	real_create = Transaction.objects.create
	calls = []

	def flaky_create(**kwargs):
		calls.append(kwargs)
		if len(calls) == 2:
			raise DatabaseError("disk full")
		return real_create(**kwargs)

	monkeypatch.setattr(Transaction.objects, "create", flaky_create)
	ops = [{"type": "deposit", "amount": 10}, {"type": "deposit", "amount": 20}, {"type": "deposit", "amount": 30}]
	with pytest.raises(DatabaseError):
		apply_batch(demo_user.id, ops)
	monkeypatch.undo()

	assert Balance.objects.get(user=demo_user, store=None).amount == 1000
	assert not Transaction.objects.exists()


def test_bulk_deposit_repeats_one_operation(demo_user):
	result = bulk_operations(demo_user.id, "deposit", 10, 3)

	assert result["balance_after"] == 1030
	descriptions = list(Transaction.objects.order_by("id").values_list("description", flat=True))
	assert descriptions == ["Bulk deposit 1/3", "Bulk deposit 2/3", "Bulk deposit 3/3"]


@pytest.mark.parametrize("count", [0, 21, "3", None])
def test_bulk_count_bounds(demo_user, count):
	with pytest.raises(ValidationError) as exc:
		bulk_operations(demo_user.id, "withdraw", 10, count)
	assert exc.value.code == "invalid_count"


def test_projection_flags_shortfall_and_low_balance(demo_user):
	short = project_net_change(demo_user.id, -1100)
	assert short["is_valid"] is False
	assert short["shortfall"] == 100

	low = project_net_change(demo_user.id, -950)
	assert low["is_valid"] is True
	assert low["projected_balance"] == 50
	assert low["warning"]

	fine = project_net_change(demo_user.id, 25)
	assert fine["warning"] is None
