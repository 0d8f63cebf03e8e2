"""Token issuing/verification behind a small provider interface.

The placeholder provider encodes the user id, issue time and lifetime into the token
itself; there is no signature and no server-side session. Swap it for a real provider
by pointing MEDALBANK_AUTH_PROVIDER at another AuthProvider subclass.
"""

import re
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from django.conf import settings
from django.utils.module_loading import import_string

from core.errors import Unauthorized

LIFETIMES = {
	"24h": timedelta(hours=24),
	"7d": timedelta(days=7),
}


@dataclass(frozen=True)
class IssuedToken:
	token: str
	session_id: str
	issued_at: datetime
	expires_at: datetime
	expires_in: str


@dataclass(frozen=True)
class TokenClaims:
	user_id: int
	issued_at: datetime
	expires_at: datetime


class AuthProvider:
	"""
	issue() hands out a token for a known user; verify() returns its claims or raises Unauthorized
	"""

	def issue(self, user, remember_me: bool = False) -> IssuedToken:
		raise NotImplementedError

	def verify(self, token: str, now: datetime | None = None) -> TokenClaims:
		raise NotImplementedError


class PlaceholderAuthProvider(AuthProvider):

	TOKEN_RE = re.compile(r"^mvp_token_(\d+)_(\d+)_(24h|7d)$")

	def issue(self, user, remember_me: bool = False) -> IssuedToken:
		issued_ms = int(time.time() * 1000)
		issued_at = datetime.fromtimestamp(issued_ms / 1000, tz=timezone.utc)
		lifetime = "7d" if remember_me else "24h"
		return IssuedToken(
			token=f"mvp_token_{user.id}_{issued_ms}_{lifetime}",
			session_id=f"session_{user.id}_{issued_ms}",
			issued_at=issued_at,
			expires_at=issued_at + LIFETIMES[lifetime],
			expires_in=lifetime,
		)

	def verify(self, token: str, now: datetime | None = None) -> TokenClaims:
		match = self.TOKEN_RE.match(token or "")
		if not match:
			raise Unauthorized(
				"Invalid token format",
				{"received_token_format": (token or "")[:20] + "..."},
				code="invalid_token",
			)
		user_id, issued_ms, lifetime = int(match.group(1)), int(match.group(2)), match.group(3)
		issued_at = datetime.fromtimestamp(issued_ms / 1000, tz=timezone.utc)
		expires_at = issued_at + LIFETIMES[lifetime]
		now = now or datetime.now(tz=timezone.utc)
		if now > expires_at:
			raise Unauthorized(
				"Token has expired",
				{"expired_at": expires_at.isoformat(), "hint": "Log in again"},
				code="token_expired",
			)
		return TokenClaims(user_id=user_id, issued_at=issued_at, expires_at=expires_at)


def get_auth_provider() -> AuthProvider:
	provider_cls = import_string(settings.MEDALBANK_AUTH_PROVIDER)
	return provider_cls()
