"""Per-client sliding-window request limiter.

State lives on the limiter instance, so tests (and each middleware instance) get
their own window bookkeeping.
"""
import math
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True)
class RateDecision:
	allowed: bool
	remaining: int
	retry_after: int
	limit: int


class SlidingWindowRateLimiter:
	"""
	Allow at most max_requests hits per client within any window_seconds span
	"""

	def __init__(self, max_requests: int = 100, window_seconds: float = 60, clock: Callable[[], float] = time.monotonic):
		self.max_requests = max_requests
		self.window_seconds = window_seconds
		self.clock = clock
		self._hits: dict[str, deque] = {}
		self._lock = threading.Lock()

	def _evict(self, now: float):
		cutoff = now - self.window_seconds
		for client in list(self._hits):
			window = self._hits[client]
			while window and window[0] <= cutoff:
				window.popleft()
			if not window:
				del self._hits[client]

	def hit(self, client: str) -> RateDecision:
		now = self.clock()
		with self._lock:
			self._evict(now)
			window = self._hits.setdefault(client, deque())
			if len(window) >= self.max_requests:
				retry_after = max(1, math.ceil(window[0] + self.window_seconds - now))
				return RateDecision(allowed=False, remaining=0, retry_after=retry_after, limit=self.max_requests)
			window.append(now)
			return RateDecision(
				allowed=True,
				remaining=self.max_requests - len(window),
				retry_after=0,
				limit=self.max_requests,
			)

	def tracked_clients(self) -> int:
		with self._lock:
			return len(self._hits)
