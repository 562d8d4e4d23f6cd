from __future__ import annotations
import httpx
from fastapi import Request

from .ratelimit import RateLimiters


def get_http_client(request: Request) -> httpx.AsyncClient:
	# Created in the app lifespan; shared by upstream calls and image fetches
	return request.app.state.http


def get_limiters(request: Request) -> RateLimiters:
	return request.app.state.limiters
