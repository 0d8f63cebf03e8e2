"""Transaction history filters, statistics, trends and summary."""

from datetime import timedelta

import pytest
from django.utils import timezone

from core.errors import UserNotFound, ValidationError
from core.models import Transaction
from core.queries import aggregate_stats, filtered_totals, list_transactions, summary, trend
from core.services import apply_transaction

pytestmark = pytest.mark.django_db


def _record(user, tx_type, amount, days_ago=0, store=None):
	return Transaction.objects.create(
		user=user,
		store=store,
		type=tx_type,
		amount=amount,
		balance_before=0,
		balance_after=0,
		created_at=timezone.now() - timedelta(days=days_ago),
	)


def test_list_is_newest_first_and_total_ignores_paging(demo_user):
	created = [apply_transaction(demo_user.id, "deposit", n) for n in (1, 2, 3, 4, 5)]

	page = list_transactions(demo_user.id, limit=2)
	assert page["total"] == 5
	assert [row["id"] for row in page["transactions"]] == [created[4].id, created[3].id]

	page = list_transactions(demo_user.id, limit="2", offset="4")
	assert [row["id"] for row in page["transactions"]] == [created[0].id]


def test_filters_are_conjunctive(demo_user, store):
	_record(demo_user, "deposit", 10, store=store)
	_record(demo_user, "withdraw", 20, store=store)
	_record(demo_user, "deposit", 30)
	_record(demo_user, "deposit", 40, days_ago=10, store=store)

	today = timezone.localdate().isoformat()
	page = list_transactions(demo_user.id, store_id=store.id, tx_type="deposit", date_from=today, date_to=today)

	assert page["total"] == 1
	assert page["transactions"][0]["amount"] == 10
	assert all(
		row["store_id"] == store.id and row["type"] == "deposit"
		for row in list_transactions(demo_user.id, store_id=store.id, tx_type="deposit")["transactions"]
	)


def test_filtered_totals_match_filter(demo_user):
	_record(demo_user, "deposit", 100)
	_record(demo_user, "withdraw", 30)
	_record(demo_user, "deposit", 5, days_ago=40)

	since = (timezone.localdate() - timedelta(days=7)).isoformat()
	totals = filtered_totals(demo_user.id, date_from=since)
	assert totals == {"total_deposits": 100, "total_withdraws": 30, "net_change": 70, "transaction_count": 2}


@pytest.mark.parametrize(
	"kwargs, code",
	[
		({"date_from": "2024-1-01"}, "invalid_date"),
		({"date_from": "2024-02-30"}, "invalid_date"),
		({"date_from": "2024-03-02", "date_to": "2024-03-01"}, "invalid_date_range"),
		({"limit": 101}, "invalid_limit"),
		({"limit": 0}, "invalid_limit"),
		({"tx_type": "refund"}, "invalid_type"),
	],
)
def test_bad_filters_are_rejected(demo_user, kwargs, code):
	with pytest.raises(ValidationError) as exc:
		list_transactions(demo_user.id, **kwargs)
	assert exc.value.code == code


def test_stats_respect_period(demo_user):
	_record(demo_user, "deposit", 100, days_ago=1)
	_record(demo_user, "deposit", 300, days_ago=2)
	_record(demo_user, "withdraw", 50, days_ago=3)
	_record(demo_user, "deposit", 999, days_ago=20)

	week = aggregate_stats(demo_user.id, "7d")
	assert week["total_deposits"] == 400
	assert week["total_withdraws"] == 50
	assert week["net_change"] == 350
	assert week["deposit_count"] == 2
	assert week["largest_deposit"] == 300
	assert week["avg_transaction"] == 150
	dates = [row["date"] for row in week["daily_breakdown"]]
	assert dates == sorted(dates, reverse=True)

	assert aggregate_stats(demo_user.id, "all")["transaction_count"] == 4
	assert aggregate_stats(demo_user.id)["period"] == "30d"

	with pytest.raises(ValidationError):
		aggregate_stats(demo_user.id, "1y")


def test_trend_series_and_label(demo_user):
	_record(demo_user, "withdraw", 30, days_ago=2)
	_record(demo_user, "deposit", 100)
	_record(demo_user, "deposit", 20)

	result = trend(demo_user.id, 30)
	series = result["daily_data"]
	assert [d["net_change"] for d in series] == [-30, 120]
	assert result["trend_analysis"]["overall_trend"] == "increasing"
	assert result["trend_analysis"]["most_active_day"]["transactions"] == 2

	assert trend(demo_user.id, 5000)["days"] == 365
	assert trend(demo_user.id)["days"] == 30


def test_trend_is_stable_without_activity(demo_user):
	result = trend(demo_user.id, "7")
	assert result["data_points"] == 0
	assert result["trend_analysis"]["overall_trend"] == "stable"


def test_summary(demo_user):
	apply_transaction(demo_user.id, "deposit", 200)
	apply_transaction(demo_user.id, "withdraw", 50)
	_record(demo_user, "deposit", 1, days_ago=30)

	data = summary(demo_user.id)
	assert data["current_balance"] == 1150
	assert data["today_transactions"] == 2
	assert data["week_deposits"] == 200
	assert data["week_net_change"] == 150
	assert data["is_active_today"] is True

	with pytest.raises(UserNotFound):
		summary(12345)
