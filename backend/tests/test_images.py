"""
Tests for image validation, sniffing and fetching.
"""

import asyncio
import base64
import io

import httpx
import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from conftest import make_image
from unjargn.errors import InputError, PayloadTooLarge, UnsupportedMediaType
from unjargn.images import (
	check_declared,
	fetch_image,
	image_from_upload,
	parse_data_url,
	sniff_mime,
	to_data_url,
)

IMAGE_URL = "https://img.test/picture"


def fetch(handler, url=IMAGE_URL, **kwargs):
	async def run():
		async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
			return await fetch_image(http, url, **kwargs)
	return asyncio.run(run())


def decoded(data_url):
	return base64.b64decode(data_url.split(",", 1)[1])


class TestParseDataUrl:
	"""Test inline data URL decoding."""

	def test_valid(self, png_bytes):
		assert parse_data_url(to_data_url("image/png", png_bytes)) == ("image/png", png_bytes)

	def test_jpg_alias(self, png_bytes):
		url = "data:image/jpg;base64," + base64.b64encode(png_bytes).decode()
		assert parse_data_url(url)[0] == "image/jpeg"

	@pytest.mark.parametrize("url", [
		"not a data url",
		"data:image/png,rawbytes",
		"data:image/png;base64,@@@@",
		"data:image/png;base64,",
	])
	def test_malformed(self, url):
		with pytest.raises(InputError):
			parse_data_url(url)

	def test_disallowed_type(self):
		with pytest.raises(UnsupportedMediaType) as exc_info:
			parse_data_url("data:image/bmp;base64,Qk0=")
		assert exc_info.value.status_code == 415

	def test_too_large(self, png_bytes):
		with pytest.raises(PayloadTooLarge):
			parse_data_url(to_data_url("image/png", png_bytes), max_bytes=10)


class TestCheckDeclared:
	def test_disallowed_type(self):
		with pytest.raises(UnsupportedMediaType):
			check_declared("image/gif", None)

	def test_too_large(self):
		with pytest.raises(PayloadTooLarge):
			check_declared("image/png", 5_000_000)

	@pytest.mark.parametrize("content_type,size", [
		("image/png", 3_000_000),
		("application/pdf", 10),
		("application/octet-stream", 10),
		(None, None),
	])
	def test_allowed(self, content_type, size):
		check_declared(content_type, size)


class TestSniffMime:
	def test_png(self, png_bytes):
		assert sniff_mime(png_bytes) == "image/png"

	def test_jpeg(self):
		assert sniff_mime(make_image("JPEG")) == "image/jpeg"

	def test_pdf(self):
		assert sniff_mime(b"%PDF-1.7\n%...") == "application/pdf"

	def test_unknown(self):
		assert sniff_mime(b"hello, not an image") is None

	def test_disallowed_format(self):
		assert sniff_mime(make_image("GIF")) is None


class TestFetchImage:
	"""Test downloading an image reference."""

	def test_downloads_and_encodes(self, png_bytes):
		url = fetch(lambda request: httpx.Response(200, content=png_bytes, headers={"content-type": "image/png"}))
		assert url.startswith("data:image/png;base64,")
		assert decoded(url) == png_bytes

	def test_sniffs_generic_content_type(self, png_bytes):
		handler = lambda request: httpx.Response(
			200, content=png_bytes, headers={"content-type": "application/octet-stream"}
		)
		assert fetch(handler).startswith("data:image/png;base64,")

	def test_http_error(self):
		with pytest.raises(InputError) as exc_info:
			fetch(lambda request: httpx.Response(404, text="nope" * 200))
		assert exc_info.value.error == "Failed to download image (404)"
		assert exc_info.value.detail == ("nope" * 200)[:500]

	def test_disallowed_served_type(self):
		with pytest.raises(UnsupportedMediaType):
			fetch(lambda request: httpx.Response(200, text="<html></html>", headers={"content-type": "text/html"}))

	def test_too_large(self, png_bytes):
		with pytest.raises(PayloadTooLarge):
			fetch(lambda request: httpx.Response(200, content=png_bytes, headers={"content-type": "image/png"}), max_bytes=10)

	def test_declared_metadata_checked_before_fetch(self):
		calls = []

		def handler(request):
			calls.append(request)
			return httpx.Response(200)

		with pytest.raises(UnsupportedMediaType):
			fetch(handler, content_type="image/gif")
		with pytest.raises(PayloadTooLarge):
			fetch(handler, content_type="image/png", size=10_000_000)
		assert calls == []

	def test_connection_error(self):
		def handler(request):
			raise httpx.ConnectError("refused")

		with pytest.raises(InputError):
			fetch(handler)


class TestImageFromUpload:
	"""Test multipart uploads."""

	def upload(self, data, content_type):
		return UploadFile(
			file=io.BytesIO(data),
			size=len(data),
			filename="upload",
			headers=Headers({"content-type": content_type}),
		)

	def test_valid(self, png_bytes):
		url = asyncio.run(image_from_upload(self.upload(png_bytes, "image/png")))
		assert decoded(url) == png_bytes

	def test_disallowed_type(self, png_bytes):
		with pytest.raises(UnsupportedMediaType):
			asyncio.run(image_from_upload(self.upload(png_bytes, "image/bmp")))

	def test_too_large(self, png_bytes):
		with pytest.raises(PayloadTooLarge):
			asyncio.run(image_from_upload(self.upload(png_bytes, "image/png"), max_bytes=10))

	def test_empty(self):
		with pytest.raises(InputError):
			asyncio.run(image_from_upload(self.upload(b"", "image/png")))
