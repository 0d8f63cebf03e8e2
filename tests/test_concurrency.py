"""Concurrent writers against one balance row, with real commits."""

import threading

import pytest
from django.db import connections

from core.models import Transaction
from core.services import DemoServices, apply_transaction, read_balance

THREADS = 6
DEPOSITS_PER_THREAD = 15


@pytest.mark.django_db(transaction=True)
def test_concurrent_deposits_are_serialized():
	user, _ = DemoServices.seed_demo_user()
	errors = []
	start = threading.Barrier(THREADS)

	def worker():
		try:
			start.wait()
			for _ in range(DEPOSITS_PER_THREAD):
				apply_transaction(user.id, "deposit", 1)
		except Exception as e:
			errors.append(e)
		finally:
			connections.close_all()

	threads = [threading.Thread(target=worker) for _ in range(THREADS)]
	for t in threads:
		t.start()
	for t in threads:
		t.join()

	expected = 1000 + THREADS * DEPOSITS_PER_THREAD
	assert errors == []
	assert read_balance(user.id)["amount"] == expected
	assert Transaction.objects.count() == THREADS * DEPOSITS_PER_THREAD

	rows = list(Transaction.objects.order_by("balance_after"))
	assert [r.balance_after for r in rows] == list(range(1001, expected + 1))
