"""
Pytest configuration and fixtures.

Upstream model calls and image downloads go through ``httpx.MockTransport``;
nothing in the suite touches the network.
"""

import io
import json

import httpx
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from unjargn.dependencies import get_http_client, get_limiters
from unjargn.main import create_app
from unjargn.ratelimit import RateLimiters, SlidingWindowRateLimiter
from unjargn.settings import settings

UPSTREAM_HOST = "api.openai.com"


def sse_frame(delta):
	"""One ``data:`` line carrying a text delta."""
	return "data: " + json.dumps({"choices": [{"delta": {"content": delta}}]}, ensure_ascii=False) + "\n"


def sse_body(*deltas, done=True):
	body = "".join(sse_frame(d) for d in deltas)
	if done:
		body += "data: [DONE]\n\n"
	return body.encode("utf-8")


def completion(content):
	return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def make_image(fmt="PNG"):
	buf = io.BytesIO()
	Image.new("RGB", (4, 4), color=(200, 30, 30)).save(buf, fmt)
	return buf.getvalue()


class FakeUpstream:
	"""Stands in for the chat-completions API and for remote image hosts."""

	def __init__(self):
		self.deltas = ("Hello", " world")
		self.status_code = 200
		self.error_body = ""
		self.content = "1. Summary\nA.\n\n2. Main Points\n- b\n\n3. Helpful Definitions\n- **B**: c"
		# url -> httpx.Response
		self.images = {}
		self.model_requests = []
		self.image_requests = []

	def handle(self, request):
		if request.url.host == UPSTREAM_HOST:
			payload = json.loads(request.content)
			self.model_requests.append(payload)
			if self.status_code >= 400:
				return httpx.Response(self.status_code, text=self.error_body)
			if payload.get("stream"):
				return httpx.Response(
					200,
					content=sse_body(*self.deltas),
					headers={"content-type": "text/event-stream"},
				)
			return httpx.Response(200, json=completion(self.content))
		self.image_requests.append(str(request.url))
		response = self.images.get(str(request.url))
		if response is None:
			return httpx.Response(404, text="not found")
		return response


@pytest.fixture
def png_bytes():
	return make_image("PNG")


@pytest.fixture
def upstream():
	return FakeUpstream()


@pytest.fixture
def configured(monkeypatch):
	"""Settings for a working deployment, restored after each test."""
	monkeypatch.setattr(settings, "openai_api_key", "sk-test")
	monkeypatch.setattr(settings, "maintenance_mode", False)
	return settings


@pytest.fixture
def limiters():
	return RateLimiters(
		coarse=SlidingWindowRateLimiter(100, 60),
		fine=SlidingWindowRateLimiter(5, 60),
	)


@pytest.fixture
def client(configured, upstream, limiters):
	app = create_app()
	http = httpx.AsyncClient(transport=httpx.MockTransport(upstream.handle))
	app.dependency_overrides[get_http_client] = lambda: http
	app.dependency_overrides[get_limiters] = lambda: limiters
	yield TestClient(app, raise_server_exceptions=False)
	app.dependency_overrides.clear()
