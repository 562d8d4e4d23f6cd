"""
Request body adapter for ``POST /api/simplify``.

Clients send JSON (``{"text": ..., "domain": ..., "level": ...}``), JSON with
an alternate text key, JSON under the wrong content type, or plain text. The
text is taken from the first strategy that yields a string:

1. the canonical ``text`` field
2. the alias fields ``content`` then ``input``
3. the raw body, when it does not parse as JSON
"""

from __future__ import annotations
import json
import logging
from typing import Any, Callable, Dict, Optional, Tuple

from .errors import InputError, PayloadTooLarge
from .schemas import Domain, Level, Modality, SimplificationRequest
from .settings import settings

logger = logging.getLogger("unjargn.inputs")

TEXT_ALIASES = ("content", "input")

# (parsed JSON object or None, whether the body parsed as JSON, raw decoded body)
ParsedBody = Tuple[Optional[Dict[str, Any]], bool, str]
TextStrategy = Callable[[ParsedBody], Optional[str]]


def parse_body(raw: bytes) -> ParsedBody:
	text = raw.decode("utf-8", errors="replace") if raw else ""
	trimmed = text.strip()
	if not trimmed.startswith(("{", "[")):
		return None, False, text
	try:
		value = json.loads(trimmed)
	except ValueError:
		logger.debug("JSON-looking body did not parse, treating as plain text")
		return None, False, text
	return (value if isinstance(value, dict) else None), True, text


def _string_field(obj: Optional[Dict[str, Any]], key: str) -> Optional[str]:
	if obj is None:
		return None
	value = obj.get(key)
	return value if isinstance(value, str) else None


def from_canonical_field(body: ParsedBody) -> Optional[str]:
	return _string_field(body[0], "text")


def from_alias_fields(body: ParsedBody) -> Optional[str]:
	for key in TEXT_ALIASES:
		value = _string_field(body[0], key)
		if value is not None:
			return value
	return None


def from_raw_body(body: ParsedBody) -> Optional[str]:
	_, is_json, raw = body
	if is_json:
		return None
	return raw.strip() or None


TEXT_STRATEGIES: Tuple[TextStrategy, ...] = (from_canonical_field, from_alias_fields, from_raw_body)


def extract_text(body: ParsedBody) -> str:
	for strategy in TEXT_STRATEGIES:
		value = strategy(body)
		if value is not None:
			return value
	return ""


def select_modality(obj: Dict[str, Any]) -> Modality:
	if _string_field(obj, "dataUrl") or _string_field(obj, "imageUrl"):
		return Modality.IMAGE
	if _string_field(obj, "pdfText") is not None:
		return Modality.PDF_TEXT
	return Modality.TEXT


def adapt_request(raw: bytes) -> SimplificationRequest:
	"""
	Turn a raw request body into a ``SimplificationRequest``.

	Domain and level come from the JSON object when present and fall back to
	general / intermediate. No validation happens here; see ``validate_request``.
	"""
	body = parse_body(raw)
	obj = body[0] or {}
	modality = select_modality(obj)
	if modality is Modality.PDF_TEXT:
		text = _string_field(obj, "pdfText") or ""
	elif modality is Modality.IMAGE:
		text = ""
	else:
		text = extract_text(body)
	size = obj.get("size")
	return SimplificationRequest(
		modality=modality,
		text=text.strip(),
		domain=Domain.coerce(obj.get("domain")),
		level=Level.coerce(obj.get("level")),
		data_url=_string_field(obj, "dataUrl"),
		image_url=_string_field(obj, "imageUrl"),
		content_type=_string_field(obj, "contentType"),
		size=size if isinstance(size, int) and not isinstance(size, bool) else None,
		stream=obj.get("stream") is not False,
	)


def validate_request(req: SimplificationRequest) -> SimplificationRequest:
	"""
	Apply the presence and size rules for the request's modality.

	Raises:
		InputError: no usable text (or no image reference)
		PayloadTooLarge: plain text over ``MAX_TEXT_CHARS``

	Returns:
		The request, with PDF text cut to ``MAX_PDF_CHARS``
	"""
	if req.modality is Modality.IMAGE:
		if not (req.data_url or req.image_url):
			raise InputError("Missing imageUrl or dataUrl")
		return req
	if req.modality is Modality.PDF_TEXT:
		if not req.text:
			raise InputError('Missing "pdfText" string.')
		if len(req.text) > settings.max_pdf_chars:
			logger.info("Truncating PDF text from %d to %d chars", len(req.text), settings.max_pdf_chars)
			return req.model_copy(update={"text": req.text[:settings.max_pdf_chars]})
		return req
	if not req.text:
		raise InputError('Missing "text" string.')
	if len(req.text) > settings.max_text_chars:
		raise PayloadTooLarge(
			detail=f"Your input has {len(req.text):,} characters. Limit is {settings.max_text_chars:,}."
		)
	return req
