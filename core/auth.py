"""Username-only login, token introspection and login history.

There are no passwords; a token only proves that someone logged in as the user.
"""
from django.db import transaction
from django.db.models import Count, Max
from django.utils import timezone

from .adapters.auth_adapter import get_auth_provider
from .constants import MAX_LOGIN_HISTORY_LIMIT
from .errors import Unauthorized, ValidationError
from .logging import get_logger
from .models import LoginHistory, User

log = get_logger(__name__)

DEFAULT_DEVICE = "Unknown Device"
DEFAULT_IP = "Unknown IP"


def _user_payload(user: User) -> dict:
	return {"id": user.id, "username": user.username, "email": user.email}


def _login_stats(user: User) -> dict:
	return LoginHistory.objects.filter(user=user).aggregate(count=Count("id"), last=Max("created_at"))


@transaction.atomic
def login(username, device_info: str | None = None, ip_address: str | None = None, remember_me: bool = False) -> dict:
	if not isinstance(username, str) or not username.strip():
		raise ValidationError("username is required", {"required": ["username"]}, code="username_required")
	user = User.objects.filter(username=username.strip()).first()
	if user is None:
		log.info("login_failed", username=username)
		raise Unauthorized("User not found", {"username": username}, code="user_not_found")

	stats = _login_stats(user)
	issued = get_auth_provider().issue(user, remember_me=bool(remember_me))
	device_info = device_info or DEFAULT_DEVICE
	LoginHistory.objects.create(
		user=user,
		session_id=issued.session_id,
		device_info=device_info[:255],
		ip_address=ip_address or DEFAULT_IP,
		created_at=issued.issued_at,
	)
	log.info("login_succeeded", user_id=user.id, session_id=issued.session_id, expires_in=issued.expires_in)
	return {
		"user": _user_payload(user),
		"token": issued.token,
		"session_id": issued.session_id,
		"expires_at": issued.expires_at,
		"expires_in": issued.expires_in,
		"login_count": stats["count"] + 1,
		"last_login": stats["last"],
		"login_time": issued.issued_at,
		"device_info": device_info,
	}


def logout() -> dict:
	"""
	Tokens are self-contained, so there is nothing to revoke
	"""
	return {"logout_time": timezone.now()}


def current_user(token: str | None) -> dict:
	if not token:
		raise Unauthorized(
			"Authentication token required",
			{"hint": "Send an Authorization: Bearer <token> header"},
			code="token_required",
		)
	now = timezone.now()
	claims = get_auth_provider().verify(token, now=now)
	user = User.objects.filter(pk=claims.user_id).first()
	if user is None:
		raise Unauthorized("User not found", {"user_id": claims.user_id}, code="user_not_found")

	stats = _login_stats(user)
	return {
		"user": _user_payload(user),
		"token_status": "valid",
		"token_age_minutes": int((now - claims.issued_at).total_seconds() // 60),
		"remaining_minutes": int((claims.expires_at - now).total_seconds() // 60),
		"expires_at": claims.expires_at,
		"login_stats": {"total_logins": stats["count"], "last_login": stats["last"]},
		"server_time": now,
	}


def login_history(user_id: int, limit: int | None = None) -> dict:
	limit = min(limit or 10, MAX_LOGIN_HISTORY_LIMIT)
	rows = list(
		LoginHistory.objects.filter(user_id=user_id)
		.order_by("-created_at", "-id")
		.values("id", "session_id", "device_info", "ip_address", "created_at")[:limit]
	)
	return {"user_id": user_id, "login_history": rows, "count": len(rows)}
