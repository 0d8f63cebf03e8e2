"""Request pipeline for the JSON API.

Order in settings.MIDDLEWARE: request log (outermost), Django security headers,
django-cors-headers, rate limit, then exception rendering closest to the views.
"""

import time
import uuid

from django.conf import settings
from django.db import DatabaseError

from core.errors import MedalBankError, RateLimited, StorageError
from core.logging import bind_request_context, clear_request_context, get_logger
from core.ratelimit import SlidingWindowRateLimiter

from .responses import error_response

log = get_logger(__name__)

SLOW_REQUEST_SECONDS = 1.0


def client_address(request) -> str:
	"""
	REMOTE_ADDR, unless it is a trusted proxy; then the nearest untrusted X-Forwarded-For hop
	"""
	remote = request.META.get("REMOTE_ADDR") or "unknown"
	trusted = settings.MEDALBANK_TRUSTED_PROXIES
	if remote not in trusted:
		return remote
	hops = [h.strip() for h in request.META.get("HTTP_X_FORWARDED_FOR", "").split(",") if h.strip()]
	for hop in reversed(hops):
		if hop not in trusted:
			return hop
	return remote


class RequestLogMiddleware:
	"""
	Bind the request id and request line into the log context and log one line per request
	"""

	def __init__(self, get_response):
		self.get_response = get_response

	def __call__(self, request):
		request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
		request.request_id = request_id
		bind_request_context(request_id, method=request.method, path=request.path, client=client_address(request))

		started = time.perf_counter()
		try:
			response = self.get_response(request)
			elapsed = time.perf_counter() - started
			duration_ms = round(elapsed * 1000, 1)
			log.info("request", status=response.status_code, duration_ms=duration_ms)
			if elapsed > SLOW_REQUEST_SECONDS:
				log.warning("slow_request", status=response.status_code, duration_ms=duration_ms)
		finally:
			clear_request_context()

		response["X-Request-ID"] = request_id
		return response


class RateLimitMiddleware:
	"""
	Sliding-window limit per client address; a limiter can be injected for tests
	"""

	def __init__(self, get_response, limiter: SlidingWindowRateLimiter | None = None):
		self.get_response = get_response
		self.limiter = limiter or SlidingWindowRateLimiter(
			max_requests=settings.MEDALBANK_RATE_LIMIT_REQUESTS,
			window_seconds=settings.MEDALBANK_RATE_LIMIT_WINDOW,
		)

	def __call__(self, request):
		if not settings.MEDALBANK_RATE_LIMIT_ENABLED:
			return self.get_response(request)

		client = client_address(request)
		decision = self.limiter.hit(client)
		if not decision.allowed:
			log.warning("rate_limited", client=client, retry_after=decision.retry_after)
			response = error_response(
				RateLimited(
					"Too many requests",
					{"limit": decision.limit, "window_seconds": self.limiter.window_seconds, "retry_after": decision.retry_after},
				)
			)
			response["Retry-After"] = str(decision.retry_after)
		else:
			response = self.get_response(request)

		response["X-RateLimit-Limit"] = str(decision.limit)
		response["X-RateLimit-Remaining"] = str(decision.remaining)
		return response


class JsonErrorMiddleware:
	"""
	Render exceptions raised by views as JSON error bodies
	"""

	def __init__(self, get_response):
		self.get_response = get_response

	def __call__(self, request):
		return self.get_response(request)

	def process_exception(self, request, exception):
		if isinstance(exception, MedalBankError):
			if exception.status_code >= 500:
				log.error("request_failed", code=exception.code, message=exception.message)
			return error_response(exception)

		if isinstance(exception, DatabaseError):
			log.exception("database_error")
			err = StorageError("A database error occurred")
		else:
			log.exception("unhandled_error")
			err = MedalBankError("Internal server error", code="internal_error")
		if settings.DEBUG:
			err.details["exception"] = f"{type(exception).__name__}: {exception}"
		return error_response(err)
