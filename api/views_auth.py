"""Placeholder authentication endpoints (username only, no passwords)."""

from core import auth
from core.validators import coerce_positive_int, optional_positive_int

from .middleware import client_address
from .responses import bearer_token, ok, read_json


def login(request):
	"""
	POST: {username, device_info?, remember_me?}
	"""
	body = read_json(request)
	result = auth.login(
		body.get("username"),
		device_info=body.get("device_info"),
		ip_address=client_address(request),
		remember_me=bool(body.get("remember_me", False)),
	)
	return ok(result, "Login succeeded")


def logout(request):
	return ok(auth.logout(), "Logged out")


def me(request):
	"""
	GET: Resolve the Authorization: Bearer token to its user
	"""
	return ok(auth.current_user(bearer_token(request)), "Token is valid")


def login_history(request, user_id):
	uid = coerce_positive_int(user_id, "userId")
	limit = optional_positive_int(request.GET.get("limit"), "limit")
	return ok(auth.login_history(uid, limit), "Login history retrieved")
