from __future__ import annotations
import base64
import binascii
import io
import logging
import re
from typing import Optional, Tuple

import httpx
from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError

from .errors import InputError, PayloadTooLarge, UnsupportedMediaType
from .openai_client import excerpt
from .schemas import SimplificationRequest
from .settings import settings

logger = logging.getLogger("unjargn.images")

ALLOWED_MIME = ("image/jpeg", "image/png", "image/webp", "application/pdf")
MIME_ALIASES = {"image/jpg": "image/jpeg", "image/pjpeg": "image/jpeg"}
PIL_FORMATS = {"JPEG": "image/jpeg", "PNG": "image/png", "WEBP": "image/webp"}
PDF_MAGIC = b"%PDF-"
GENERIC_MIME = "application/octet-stream"
FETCH_ERROR_EXCERPT_CHARS = 500

_DATA_URL_RE = re.compile(
	r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)(?:;[\w.+-]+=[^;,]*)*;base64,(?P<payload>.*)$",
	re.DOTALL | re.IGNORECASE,
)


def normalize_mime(value: Optional[str]) -> str:
	"""``"Image/JPG; charset=binary"`` -> ``"image/jpeg"``"""
	mime = (value or "").split(";")[0].strip().lower()
	return MIME_ALIASES.get(mime, mime)


def check_mime(value: Optional[str]) -> str:
	mime = normalize_mime(value)
	if mime not in ALLOWED_MIME:
		raise UnsupportedMediaType(detail=f"{mime or 'unknown'} is not allowed. Use JPEG, PNG, WEBP or PDF.")
	return mime


def check_size(size: int, max_bytes: Optional[int] = None) -> None:
	limit = settings.max_image_bytes if max_bytes is None else max_bytes
	if size > limit:
		raise PayloadTooLarge(detail=f"File is {size:,} bytes. Limit is {limit:,}.")


def to_data_url(mime: str, data: bytes) -> str:
	return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def parse_data_url(url: str, *, max_bytes: Optional[int] = None) -> Tuple[str, bytes]:
	"""
	Decode a ``data:<mime>;base64,<payload>`` URL.

	Raises:
		InputError: not a base64 data URL
		UnsupportedMediaType: MIME outside the allow-list
		PayloadTooLarge: decoded payload over the byte ceiling

	Returns:
		(normalized mime, decoded bytes)
	"""
	m = _DATA_URL_RE.match((url or "").strip())
	if m is None:
		raise InputError("Invalid dataUrl format")
	mime = check_mime(m.group("mime"))
	payload = re.sub(r"\s+", "", m.group("payload"))
	try:
		data = base64.b64decode(payload, validate=True)
	except (binascii.Error, ValueError):
		raise InputError("Invalid dataUrl format", detail="Payload is not valid base64")
	if not data:
		raise InputError("Invalid dataUrl format", detail="Payload is empty")
	check_size(len(data), max_bytes)
	return mime, data


def check_declared(content_type: Optional[str], size: Optional[int], *, max_bytes: Optional[int] = None) -> None:
	"""Reject declared metadata up front, before any bytes are fetched or read."""
	if content_type and normalize_mime(content_type) != GENERIC_MIME:
		check_mime(content_type)
	if size is not None:
		if size < 0:
			raise InputError("Invalid file size")
		check_size(size, max_bytes)


def sniff_mime(data: bytes) -> Optional[str]:
	if data.startswith(PDF_MAGIC):
		return "application/pdf"
	try:
		with Image.open(io.BytesIO(data)) as img:
			fmt = img.format
	except (UnidentifiedImageError, OSError):
		return None
	return PIL_FORMATS.get(fmt or "")


def _resolve_mime(declared: Optional[str], data: bytes) -> str:
	mime = normalize_mime(declared)
	if mime and mime != GENERIC_MIME:
		return check_mime(mime)
	sniffed = sniff_mime(data)
	if sniffed is None:
		raise UnsupportedMediaType(detail="Could not determine the file type.")
	return sniffed


async def fetch_image(
	http: httpx.AsyncClient,
	url: str,
	*,
	content_type: Optional[str] = None,
	size: Optional[int] = None,
	max_bytes: Optional[int] = None,
) -> str:
	"""
	Download an image reference and return it as a base64 data URL.

	Declared metadata is checked before the request is made. The download is
	read in chunks and abandoned as soon as it passes the byte ceiling.
	"""
	limit = settings.max_image_bytes if max_bytes is None else max_bytes
	check_declared(content_type, size, max_bytes=limit)
	try:
		async with http.stream("GET", url) as response:
			if not response.is_success:
				body = await response.aread()
				logger.warning("Image download from %s failed with %s", url, response.status_code)
				raise InputError(
					f"Failed to download image ({response.status_code})",
					detail=excerpt(body, FETCH_ERROR_EXCERPT_CHARS),
				)
			declared_length = response.headers.get("content-length", "")
			if declared_length.isdigit():
				check_size(int(declared_length), limit)
			buf = bytearray()
			async for chunk in response.aiter_bytes():
				buf.extend(chunk)
				if len(buf) > limit:
					raise PayloadTooLarge(detail=f"File is over the {limit:,} byte limit.")
			header_mime = response.headers.get("content-type")
	except httpx.RequestError as err:
		logger.warning("Image download from %s failed: %s", url, err)
		raise InputError("Failed to download image", detail=str(err))
	data = bytes(buf)
	return to_data_url(_resolve_mime(header_mime, data), data)


async def image_from_upload(upload: UploadFile, *, max_bytes: Optional[int] = None) -> str:
	limit = settings.max_image_bytes if max_bytes is None else max_bytes
	check_declared(upload.content_type, upload.size, max_bytes=limit)
	data = await upload.read(limit + 1)
	if not data:
		raise InputError("Uploaded file is empty")
	check_size(len(data), limit)
	return to_data_url(_resolve_mime(upload.content_type, data), data)


async def resolve_image(http: httpx.AsyncClient, req: SimplificationRequest) -> str:
	"""Inline data URL for an image request; a data URL wins over a reference."""
	if req.data_url:
		mime, data = parse_data_url(req.data_url)
		return to_data_url(mime, data)
	if req.image_url:
		return await fetch_image(http, req.image_url, content_type=req.content_type, size=req.size)
	raise InputError("Missing imageUrl or dataUrl")
