"""Store management endpoints."""

from core.stores import create_store, delete_store, get_store, list_stores, store_stats, update_store
from core.validators import coerce_positive_int

from .responses import ok, query_bool, read_json, store_payload


def stores_index(request):
	rows = [store_payload(s) for s in list_stores()]
	return ok({"stores": rows, "count": len(rows)}, "Stores retrieved")


def stores_create(request):
	"""
	POST: {name, description?, color?, createBalanceForAllUsers?}
	"""
	body = read_json(request)
	store = create_store(
		body.get("name"),
		description=body.get("description"),
		color=body.get("color"),
		create_balance_for_all_users=bool(body.get("createBalanceForAllUsers", False)),
	)
	return ok({"store": store_payload(store)}, "Store created", status=201)


def store_detail(request, store_id):
	sid = coerce_positive_int(store_id, "storeId")
	return ok({"store": store_payload(get_store(sid))}, "Store retrieved")


def store_update(request, store_id):
	sid = coerce_positive_int(store_id, "storeId")
	body = read_json(request)
	store = update_store(sid, body.get("name"), description=body.get("description"), color=body.get("color"))
	return ok({"store": store_payload(store)}, "Store updated")


def store_delete(request, store_id):
	"""
	DELETE: Refused while related data exists unless ?forceDelete=true
	"""
	sid = coerce_positive_int(store_id, "storeId")
	result = delete_store(sid, force=query_bool(request, "forceDelete"))
	return ok(result, "Store deleted")


def store_stats_view(request, store_id):
	sid = coerce_positive_int(store_id, "storeId")
	return ok(store_stats(sid), "Store statistics retrieved")
