from __future__ import annotations
import logging
import httpx
from typing import Any, Dict, List, Optional
from .errors import MisconfiguredError, UpstreamError
from .settings import settings

logger = logging.getLogger("unjargn.upstream")

# Upstream error bodies are echoed back to the client, truncated
DIAGNOSTIC_EXCERPT_CHARS = 2000


def excerpt(raw: bytes | str, limit: int = DIAGNOSTIC_EXCERPT_CHARS) -> str:
	text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
	return text[:limit]


class OpenAIClient:
	"""Chat-completions client. One call per request, never retried."""

	def __init__(
		self,
		http: httpx.AsyncClient,
		api_key: Optional[str] = None,
		*,
		base_url: Optional[str] = None,
		model: Optional[str] = None,
		temperature: Optional[float] = None,
		max_tokens: Optional[int] = None,
	) -> None:
		self.api_key = api_key or settings.openai_api_key
		if not self.api_key:
			raise MisconfiguredError("Server missing OPENAI_API_KEY")
		self.base_url = base_url or settings.openai_base_url
		self.model = model or settings.openai_model
		self.temperature = settings.openai_temperature if temperature is None else temperature
		self.max_tokens = settings.openai_max_tokens if max_tokens is None else max_tokens
		self._http = http

	def _headers(self) -> Dict[str, str]:
		return {
			"Authorization": f"Bearer {self.api_key}",
			"Content-Type": "application/json",
		}

	def build_payload(self, messages: List[Dict[str, Any]], *, stream: bool) -> Dict[str, Any]:
		payload: Dict[str, Any] = {
			"model": self.model,
			"temperature": self.temperature,
			"stream": stream,
			"messages": messages,
		}
		if self.max_tokens:
			payload["max_tokens"] = self.max_tokens
		return payload

	async def open_stream(self, messages: List[Dict[str, Any]]) -> httpx.Response:
		"""
		Start a streaming completion and return the open response.

		The caller owns the response and must close it (the relay does so on
		every exit path). Non-success statuses are read, closed, and raised as
		``UpstreamError`` before any byte reaches the client.
		"""
		request = self._http.build_request(
			"POST",
			self.base_url,
			headers=self._headers(),
			json=self.build_payload(messages, stream=True),
		)
		try:
			response = await self._http.send(request, stream=True)
		except httpx.RequestError as net_err:
			logger.error("Upstream connection failed: %s", net_err)
			raise UpstreamError(detail=str(net_err)) from net_err
		if response.status_code >= 400:
			try:
				raw = await response.aread()
			finally:
				await response.aclose()
			logger.error("Upstream returned %s: %s", response.status_code, excerpt(raw, 300))
			raise UpstreamError(detail=excerpt(raw))
		return response

	async def complete(self, messages: List[Dict[str, Any]]) -> str:
		try:
			r = await self._http.post(
				self.base_url,
				headers=self._headers(),
				json=self.build_payload(messages, stream=False),
			)
		except httpx.RequestError as net_err:
			logger.error("Upstream connection failed: %s", net_err)
			raise UpstreamError(detail=str(net_err)) from net_err
		if r.status_code >= 400:
			logger.error("Upstream returned %s: %s", r.status_code, excerpt(r.text, 300))
			raise UpstreamError(detail=excerpt(r.text))
		try:
			data = r.json()
			content = data["choices"][0]["message"]["content"]
		except (ValueError, KeyError, IndexError, TypeError):
			logger.error("Unexpected upstream response: %s", excerpt(r.text, 300))
			raise UpstreamError(detail=excerpt(r.text))
		return content or ""
