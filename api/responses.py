"""JSON request/response helpers shared by the api views and middleware.

Success bodies are the entity fields plus a human-readable "message"; error bodies are
{"error": <code>, "message": <text>, ...details}.
"""

import json

from django.http import JsonResponse

from core.errors import MedalBankError, ValidationError


def read_json(request) -> dict:
	"""
	Parse the request body as a JSON object; an empty body reads as {}
	"""
	try:
		body = json.loads(request.body or b"{}")
	except (ValueError, UnicodeDecodeError):
		raise ValidationError("Request body is not valid JSON", code="invalid_json")
	if not isinstance(body, dict):
		raise ValidationError("Request body must be a JSON object", {"received": type(body).__name__}, code="invalid_json")
	return body


def query_bool(request, name: str) -> bool:
	return request.GET.get(name, "").lower() in ("1", "true", "yes")


def bearer_token(request) -> str | None:
	header = request.headers.get("Authorization", "")
	if not header.startswith("Bearer "):
		return None
	return header[len("Bearer "):].strip() or None


def ok(payload: dict, message: str, status: int = 200) -> JsonResponse:
	body = dict(payload)
	body["message"] = message
	return JsonResponse(body, status=status)


def error_response(err: MedalBankError) -> JsonResponse:
	body = {"error": err.code, "message": err.message}
	for key, value in err.details.items():
		body.setdefault(key, value)
	return JsonResponse(body, status=err.status_code)


def method_not_allowed(request, allowed: list[str]) -> JsonResponse:
	response = JsonResponse(
		{
			"error": "method_not_allowed",
			"message": f"{request.method} is not allowed here",
			"allowed_methods": allowed,
		},
		status=405,
	)
	response["Allow"] = ", ".join(allowed)
	return response


def transaction_payload(tx) -> dict:
	return {
		"id": tx.id,
		"user_id": tx.user_id,
		"store_id": tx.store_id,
		"type": tx.type,
		"amount": tx.amount,
		"balance_before": tx.balance_before,
		"balance_after": tx.balance_after,
		"description": tx.description,
		"created_at": tx.created_at,
	}


def store_payload(store) -> dict:
	data = {
		"id": store.id,
		"name": store.name,
		"description": store.description,
		"color": store.color,
		"created_at": store.created_at,
		"updated_at": store.updated_at,
	}
	if hasattr(store, "user_count"):
		data["user_count"] = store.user_count
		data["total_balance"] = store.total_balance
	return data
