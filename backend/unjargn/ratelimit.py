from __future__ import annotations
import math
import threading
import time
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from fastapi import Request

from .settings import settings


@dataclass(frozen=True)
class RateLimitDecision:
	allowed: bool
	limit: int
	remaining: int
	reset_seconds: int

	def headers(self) -> Dict[str, str]:
		return {
			"X-RateLimit-Limit": str(self.limit),
			"X-RateLimit-Remaining": str(self.remaining),
			"X-RateLimit-Reset": str(self.reset_seconds),
		}


class SlidingWindowRateLimiter:
	"""
	In-memory sliding-window limiter keyed by an arbitrary string.

	Every check records a hit, rejected ones included, so a client hammering
	the endpoint keeps its own window full. Keys idle for a whole window are
	swept. State is per process and is lost on restart.
	"""

	def __init__(self, limit: int, window_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
		self.limit = limit
		self.window_seconds = window_seconds
		self._clock = clock
		self._hits: Dict[str, List[float]] = defaultdict(list)
		self._lock = threading.Lock()
		self._last_sweep = clock()

	def __len__(self) -> int:
		return len(self._hits)

	def _sweep(self, now: float) -> None:
		# keys whose newest hit has left the window carry no state
		stale = [key for key, hits in self._hits.items() if not hits or now - hits[-1] >= self.window_seconds]
		for key in stale:
			del self._hits[key]
		self._last_sweep = now

	def check(self, key: str) -> RateLimitDecision:
		now = self._clock()
		with self._lock:
			if now - self._last_sweep >= self.window_seconds:
				self._sweep(now)
			hits = [t for t in self._hits[key] if now - t < self.window_seconds]
			hits.append(now)
			self._hits[key] = hits
			count = len(hits)
			oldest = hits[0]
		reset = max(0, math.ceil(self.window_seconds - (now - oldest)))
		return RateLimitDecision(
			allowed=count <= self.limit,
			limit=self.limit,
			remaining=max(0, self.limit - count),
			reset_seconds=reset,
		)

	def reset(self, key: Optional[str] = None) -> None:
		with self._lock:
			if key is None:
				self._hits.clear()
			else:
				self._hits.pop(key, None)


class RateLimiters:
	"""Coarse per-route guard plus the stricter per-client simplify quota."""

	def __init__(
		self,
		coarse: Optional[SlidingWindowRateLimiter] = None,
		fine: Optional[SlidingWindowRateLimiter] = None,
	) -> None:
		self.coarse = coarse or SlidingWindowRateLimiter(
			settings.rate_limit_coarse_max, settings.rate_limit_coarse_window_seconds
		)
		self.fine = fine or SlidingWindowRateLimiter(
			settings.rate_limit_max, settings.rate_limit_window_seconds
		)

	def reset(self) -> None:
		self.coarse.reset()
		self.fine.reset()


def client_ip(request: Request) -> str:
	forwarded = request.headers.get("x-forwarded-for", "")
	if forwarded:
		first = forwarded.split(",")[0].strip()
		if first:
			return first
	cf = request.headers.get("cf-connecting-ip", "").strip()
	if cf:
		return cf
	if request.client and request.client.host:
		return request.client.host
	return "unknown"
