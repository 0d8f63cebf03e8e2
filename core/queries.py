"""Read-only transaction history and statistics.

Filters are assembled as a list of Q predicates and AND-ed together; the ORM binds
every value as a query parameter.
"""
from datetime import timedelta
from functools import reduce
from operator import and_

from django.db.models import Avg, Count, Max, Min, Q, Sum
from django.db.models.functions import Coalesce, TruncDate
from django.utils import timezone

from .constants import (
	DEFAULT_PERIOD,
	DEFAULT_TREND_DAYS,
	MAX_TREND_DAYS,
	PERIOD_DAYS,
	TREND_DOWN_THRESHOLD,
	TREND_UP_THRESHOLD,
	default_list_limit,
	max_list_limit,
)
from .errors import ValidationError
from .models import Balance, Transaction, TransactionType
from .services import ensure_ledger_user
from .validators import parse_day, validate_type

TRANSACTION_FIELDS = (
	"id",
	"user_id",
	"store_id",
	"type",
	"amount",
	"balance_before",
	"balance_after",
	"description",
	"created_at",
)

DEPOSITS = Q(type=TransactionType.DEPOSIT)
WITHDRAWALS = Q(type=TransactionType.WITHDRAW)


def _clean_limit(limit) -> int:
	if limit is None or limit == "":
		return default_list_limit()
	ceiling = max_list_limit()
	if isinstance(limit, str):
		limit = int(limit) if limit.strip().lstrip("-").isdigit() else None
	if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= ceiling:
		raise ValidationError(f"limit must be between 1 and {ceiling}", {"received": limit, "max": ceiling}, code="invalid_limit")
	return limit


def _clean_offset(offset) -> int:
	if offset is None or offset == "":
		return 0
	if isinstance(offset, str):
		offset = int(offset) if offset.strip().isdigit() else None
	if isinstance(offset, bool) or not isinstance(offset, int) or offset < 0:
		raise ValidationError("offset must be a non-negative integer", {"received": offset}, code="invalid_offset")
	return offset


def transaction_filters(user_id, *, store_id=None, tx_type=None, date_from=None, date_to=None) -> list[Q]:
	"""
	Build the conjunctive predicate list; dates are inclusive calendar days
	"""
	start = parse_day(date_from, "dateFrom")
	end = parse_day(date_to, "dateTo")
	if start and end and start > end:
		raise ValidationError(
			"dateFrom must not be after dateTo",
			{"dateFrom": date_from, "dateTo": date_to},
			code="invalid_date_range",
		)

	predicates = [Q(user_id=user_id)]
	if store_id is not None:
		predicates.append(Q(store_id=store_id))
	if tx_type:
		predicates.append(Q(type=validate_type(tx_type)))
	if start:
		predicates.append(Q(created_at__date__gte=start))
	if end:
		predicates.append(Q(created_at__date__lte=end))
	return predicates


def _filtered(predicates: list[Q]):
	return Transaction.objects.filter(reduce(and_, predicates))


def list_transactions(
	user_id: int,
	*,
	store_id=None,
	tx_type=None,
	date_from=None,
	date_to=None,
	limit=None,
	offset=None,
) -> dict:
	"""
	Newest-first page of a user's transactions plus the total matching the filter
	"""
	limit = _clean_limit(limit)
	offset = _clean_offset(offset)
	qs = _filtered(
		transaction_filters(user_id, store_id=store_id, tx_type=tx_type, date_from=date_from, date_to=date_to)
	)
	rows = list(qs.order_by("-created_at", "-id").values(*TRANSACTION_FIELDS)[offset:offset + limit])
	return {"transactions": rows, "total": qs.count(), "limit": limit, "offset": offset}


def filtered_totals(user_id: int, *, store_id=None, tx_type=None, date_from=None, date_to=None) -> dict:
	qs = _filtered(
		transaction_filters(user_id, store_id=store_id, tx_type=tx_type, date_from=date_from, date_to=date_to)
	)
	agg = qs.aggregate(
		deposits=Coalesce(Sum("amount", filter=DEPOSITS), 0),
		withdraws=Coalesce(Sum("amount", filter=WITHDRAWALS), 0),
		count=Count("id"),
	)
	return {
		"total_deposits": agg["deposits"],
		"total_withdraws": agg["withdraws"],
		"net_change": agg["deposits"] - agg["withdraws"],
		"transaction_count": agg["count"],
	}


def _since(days: int):
	"""
	Start of the calendar day `days` days before today
	"""
	return timezone.localdate() - timedelta(days=days)


def _daily(qs):
	return (
		qs.order_by()
		.annotate(date=TruncDate("created_at"))
		.values("date")
		.annotate(
			deposits=Coalesce(Sum("amount", filter=DEPOSITS), 0),
			withdraws=Coalesce(Sum("amount", filter=WITHDRAWALS), 0),
			transactions=Count("id"),
		)
	)


def aggregate_stats(user_id: int, period: str | None = None) -> dict:
	"""
	Totals, extremes and a descending daily breakdown over the period
	"""
	period = period or DEFAULT_PERIOD
	if period not in PERIOD_DAYS:
		raise ValidationError("Invalid period", {"received": period, "valid_periods": list(PERIOD_DAYS)}, code="invalid_period")

	qs = Transaction.objects.filter(user_id=user_id)
	days = PERIOD_DAYS[period]
	if days is not None:
		qs = qs.filter(created_at__date__gte=_since(days))

	stats = qs.aggregate(
		total_transactions=Count("id"),
		total_deposits=Coalesce(Sum("amount", filter=DEPOSITS), 0),
		total_withdraws=Coalesce(Sum("amount", filter=WITHDRAWALS), 0),
		deposit_count=Count("id", filter=DEPOSITS),
		withdraw_count=Count("id", filter=WITHDRAWALS),
		avg_transaction=Avg("amount"),
		largest_deposit=Max("amount", filter=DEPOSITS),
		largest_withdraw=Max("amount", filter=WITHDRAWALS),
		first_transaction=Min("created_at"),
		last_transaction=Max("created_at"),
	)
	daily = [
		{
			"date": row["date"],
			"daily_deposits": row["deposits"],
			"daily_withdraws": row["withdraws"],
			"daily_transactions": row["transactions"],
		}
		for row in _daily(qs).order_by("-date")
	]
	return {
		"user_id": user_id,
		"period": period,
		"total_deposits": stats["total_deposits"],
		"total_withdraws": stats["total_withdraws"],
		"net_change": stats["total_deposits"] - stats["total_withdraws"],
		"transaction_count": stats["total_transactions"],
		"deposit_count": stats["deposit_count"],
		"withdraw_count": stats["withdraw_count"],
		"avg_transaction": round(stats["avg_transaction"] or 0),
		"largest_deposit": stats["largest_deposit"] or 0,
		"largest_withdraw": stats["largest_withdraw"] or 0,
		"first_transaction": stats["first_transaction"],
		"last_transaction": stats["last_transaction"],
		"daily_breakdown": daily,
	}


def _trend_label(avg_daily_net: float) -> str:
	if avg_daily_net > TREND_UP_THRESHOLD:
		return "increasing"
	if avg_daily_net < TREND_DOWN_THRESHOLD:
		return "decreasing"
	return "stable"


def trend(user_id: int, days=None) -> dict:
	"""
	Ascending daily series over the last `days` days (capped at 365) with an overall label
	"""
	if days is None or days == "":
		days = DEFAULT_TREND_DAYS
	if isinstance(days, str):
		days = int(days) if days.strip().isdigit() else None
	if isinstance(days, bool) or not isinstance(days, int) or days < 1:
		raise ValidationError("days must be a positive integer", {"received": days}, code="invalid_days")
	days = min(days, MAX_TREND_DAYS)

	qs = Transaction.objects.filter(user_id=user_id, created_at__date__gte=_since(days))
	series = [
		{
			"date": row["date"],
			"deposits": row["deposits"],
			"withdraws": row["withdraws"],
			"transactions": row["transactions"],
			"net_change": row["deposits"] - row["withdraws"],
		}
		for row in _daily(qs).order_by("date")
	]
	avg_daily_net = sum(d["net_change"] for d in series) / len(series) if series else 0
	most_active = max(series, key=lambda d: d["transactions"]) if series else None
	return {
		"user_id": user_id,
		"days": days,
		"data_points": len(series),
		"daily_data": series,
		"trend_analysis": {
			"overall_trend": _trend_label(avg_daily_net),
			"avg_daily_net": round(avg_daily_net),
			"most_active_day": most_active,
		},
	}


def summary(user_id: int) -> dict:
	"""
	Headline numbers for the home screen
	"""
	user = ensure_ledger_user(user_id)
	current = Balance.objects.filter(user=user).aggregate(total=Sum("amount"))["total"] or 0
	today = timezone.localdate()
	qs = Transaction.objects.filter(user=user)
	agg = qs.aggregate(
		total_transactions=Count("id"),
		today_transactions=Count("id", filter=Q(created_at__date=today)),
		week_deposits=Coalesce(Sum("amount", filter=DEPOSITS & Q(created_at__date__gte=_since(7))), 0),
		week_withdraws=Coalesce(Sum("amount", filter=WITHDRAWALS & Q(created_at__date__gte=_since(7))), 0),
		last_transaction_time=Max("created_at"),
	)
	return {
		"user_id": user.id,
		"current_balance": current,
		"total_transactions": agg["total_transactions"],
		"today_transactions": agg["today_transactions"],
		"week_deposits": agg["week_deposits"],
		"week_withdraws": agg["week_withdraws"],
		"week_net_change": agg["week_deposits"] - agg["week_withdraws"],
		"last_transaction_time": agg["last_transaction_time"],
		"is_active_today": agg["today_transactions"] > 0,
	}
