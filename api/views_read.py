"""Read-only endpoints: balances, transaction history, statistics and projections."""

from django.http import JsonResponse
from django.utils import timezone

from core.errors import ValidationError
from core.queries import aggregate_stats, filtered_totals, list_transactions, summary, trend
from core.services import balance_breakdown, project_net_change, read_balance
from core.validators import coerce_positive_int, optional_positive_int

from .responses import ok, query_bool


def health(request):
	return JsonResponse({"status": "OK", "message": "MedalBank API is running", "timestamp": timezone.now()})


def balance(request, user_id):
	"""
	GET: One store's balance (?storeId=) or the global sum with a per-row breakdown
	"""
	uid = coerce_positive_int(user_id, "userId")
	store_id = optional_positive_int(request.GET.get("storeId"), "storeId")
	data = read_balance(uid, store_id)
	data["total_balance"] = data["amount"]
	if store_id is None:
		data["balances"] = balance_breakdown(uid)
	return ok(data, "Balance retrieved")


def transactions(request):
	"""
	GET: Newest-first transaction page for ?userId= with optional filters
	"""
	uid = coerce_positive_int(request.GET.get("userId"), "userId")
	filters = {
		"store_id": optional_positive_int(request.GET.get("storeId"), "storeId"),
		"tx_type": request.GET.get("type") or None,
		"date_from": request.GET.get("dateFrom") or None,
		"date_to": request.GET.get("dateTo") or None,
	}
	page = list_transactions(uid, limit=request.GET.get("limit"), offset=request.GET.get("offset"), **filters)
	page["user_id"] = uid
	page["count"] = len(page["transactions"])
	page["has_more"] = page["offset"] + page["count"] < page["total"]
	page["filters"] = {k: v for k, v in filters.items() if v is not None}
	if query_bool(request, "includeStats"):
		page["stats"] = filtered_totals(uid, **filters)
	return ok(page, "Transactions retrieved")


def user_stats(request, user_id):
	uid = coerce_positive_int(user_id, "userId")
	return ok(aggregate_stats(uid, request.GET.get("period") or None), "Statistics retrieved")


def user_summary(request, user_id):
	uid = coerce_positive_int(user_id, "userId")
	return ok(summary(uid), "Summary retrieved")


def user_trends(request, user_id):
	uid = coerce_positive_int(user_id, "userId")
	return ok(trend(uid, request.GET.get("days")), "Trends retrieved")


def validate_net_change(request):
	"""
	GET: Project ?netChange= against the current balance without writing anything
	"""
	uid = coerce_positive_int(request.GET.get("userId"), "userId")
	store_id = optional_positive_int(request.GET.get("storeId"), "storeId")
	raw = (request.GET.get("netChange") or "0").strip()
	try:
		net_change = int(raw)
	except ValueError:
		raise ValidationError("netChange must be an integer", {"received": raw}, code="invalid_net_change")

	result = project_net_change(uid, net_change, store_id)
	return ok(result, "Validation passed" if result["is_valid"] else "Validation failed")
