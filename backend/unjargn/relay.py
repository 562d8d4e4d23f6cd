"""
Server-sent-events to plain-text relay.

The upstream API streams newline-delimited frames such as::

	data: {"choices":[{"delta":{"content":"Hel"}}]}
	data: [DONE]

The relay decodes bytes incrementally, keeps one string buffer across reads,
and forwards each text delta the moment its line is complete. Only
newline-terminated lines are processed; a partial line waits in the buffer for
the next read, so added latency is bounded by one line.

Termination rules:
- the first ``[DONE]`` frame ends the stream; anything after it in the buffer
  is dropped;
- if the upstream body ends without ``[DONE]``, the stream ends normally and an
  unterminated trailing fragment is dropped;
- a read error is logged and re-raised, which aborts the outbound response.

The upstream response is closed on every exit path, including the client
going away mid-stream (the ASGI server closes or cancels the generator).
"""

from __future__ import annotations
import codecs
import json
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterable, AsyncIterator, Optional

import httpx

logger = logging.getLogger("unjargn.relay")

DATA_PREFIX = "data:"
DONE_TOKEN = "[DONE]"


@dataclass(frozen=True)
class StreamEvent:
	delta: str = ""
	done: bool = False


def extract_delta(obj: Any) -> str:
	"""Text delta nested at ``choices[0].delta.content``, or "" when absent."""
	try:
		content = obj["choices"][0]["delta"].get("content")
	except (KeyError, IndexError, TypeError, AttributeError):
		return ""
	return content if isinstance(content, str) else ""


def parse_event_line(line: str) -> Optional[StreamEvent]:
	"""
	Interpret one complete frame line.

	Returns None for anything that carries no text: non-data lines (comments,
	``event:`` fields, blank keep-alives), unparsable payloads, and payloads
	without a delta.
	"""
	trimmed = line.strip()
	if not trimmed.startswith(DATA_PREFIX):
		return None
	payload = trimmed[len(DATA_PREFIX):].strip()
	if payload == DONE_TOKEN:
		return StreamEvent(done=True)
	try:
		obj = json.loads(payload)
	except ValueError:
		return None
	delta = extract_delta(obj)
	if not delta:
		return None
	return StreamEvent(delta=delta)


async def iter_stream_events(chunks: AsyncIterable[bytes]) -> AsyncIterator[StreamEvent]:
	decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
	buffer = ""
	async for chunk in chunks:
		if not chunk:
			continue
		buffer += decoder.decode(chunk)
		*lines, buffer = buffer.split("\n")
		for line in lines:
			event = parse_event_line(line)
			if event is None:
				continue
			yield event
			if event.done:
				return


async def relay_chunks(chunks: AsyncIterable[bytes]) -> AsyncIterator[bytes]:
	async for event in iter_stream_events(chunks):
		if event.done:
			return
		yield event.delta.encode("utf-8")


async def relay(response: httpx.Response) -> AsyncIterator[bytes]:
	"""Body iterator for ``StreamingResponse``; owns and closes ``response``."""
	sent = 0
	try:
		async for data in relay_chunks(response.aiter_bytes()):
			sent += len(data)
			yield data
	except httpx.HTTPError as err:
		logger.error("Upstream stream failed after %d bytes: %s", sent, err)
		raise
	finally:
		await response.aclose()
		logger.debug("Relay finished, %d bytes sent", sent)


async def collect_text(chunks: AsyncIterable[bytes]) -> str:
	parts = []
	async for data in relay_chunks(chunks):
		parts.append(data.decode("utf-8"))
	return "".join(parts)
