"""
Simplification API Router

Endpoints:
- POST /api/simplify: text, PDF text or image in; three-section explanation
  out, streamed as plain text by default or as JSON with ``"stream": false``
- POST /api/analyze-image: image by data URL or reference, JSON reply
- POST /api/analyze-image/upload: same, multipart file upload
- POST /api/repair: run the output repair pass on finished text

Every request is checked in a fixed order, and nothing reaches the model
until all checks pass: coarse per-address limiter, API key, input adapter,
input validation, per-client quota, image resolution.
"""

from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional

import httpx
from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from ..dependencies import get_http_client, get_limiters
from ..errors import InputError, RateLimited
from ..images import image_from_upload, resolve_image
from ..inputs import adapt_request, validate_request
from ..openai_client import OpenAIClient
from ..prompts import build_image_prompt, build_messages, build_prompt, is_short_input
from ..ratelimit import RateLimiters, client_ip
from ..relay import relay
from ..results import parse_result, placeholder_document, repair_output
from ..schemas import Domain, Level, Modality, RepairRequest, SimplificationRequest, SimplifyResponse
from ..settings import settings

logger = logging.getLogger("unjargn.gateway")

router = APIRouter(prefix="/api", tags=["simplify"])

EMPTY_REPLY_MESSAGE = "The model returned an empty response. Please try again."


# ============================================================================
# REQUEST MODELS
# ============================================================================

class AnalyzeImageRequest(BaseModel):
	"""Body of ``POST /api/analyze-image``; camelCase on the wire."""

	model_config = ConfigDict(populate_by_name=True)

	data_url: Optional[str] = Field(default=None, alias="dataUrl")
	image_url: Optional[str] = Field(default=None, alias="imageUrl")
	content_type: Optional[str] = Field(default=None, alias="contentType")
	size: Optional[int] = None
	level: Optional[str] = None
	domain: Optional[str] = None

	def to_request(self) -> SimplificationRequest:
		return SimplificationRequest(
			modality=Modality.IMAGE,
			domain=Domain.coerce(self.domain),
			level=Level.coerce(self.level),
			data_url=self.data_url,
			image_url=self.image_url,
			content_type=self.content_type,
			size=self.size,
			stream=False,
		)


# ============================================================================
# GUARDS
# ============================================================================

def enforce_coarse_limit(request: Request, limiters: RateLimiters, scope: str) -> None:
	decision = limiters.coarse.check(f"{scope}:{client_ip(request)}")
	if not decision.allowed:
		logger.info("Coarse limit hit for %s on %s", client_ip(request), scope)
		raise RateLimited("Rate limited", detail="Too many requests. Please slow down.")


def enforce_quota(request: Request, limiters: RateLimiters, scope: str) -> None:
	decision = limiters.fine.check(f"{scope}:{client_ip(request)}")
	if not decision.allowed:
		logger.info("Quota exhausted for %s on %s", client_ip(request), scope)
		raise RateLimited(headers=decision.headers())


# ============================================================================
# HELPERS
# ============================================================================

def messages_for(req: SimplificationRequest, image_data_url: Optional[str] = None) -> List[Dict[str, Any]]:
	if image_data_url:
		return build_messages(build_image_prompt(req.level), image_data_url=image_data_url)
	prompt = build_prompt(
		req.domain,
		req.text,
		req.level,
		document=req.modality is Modality.PDF_TEXT,
		max_document_chars=settings.max_pdf_chars,
		short_max_words=settings.short_input_max_words,
		short_min_chars=settings.short_input_min_chars,
	)
	short = is_short_input(
		req.text,
		max_words=settings.short_input_max_words,
		min_chars=settings.short_input_min_chars,
	)
	return build_messages(prompt, short=short)


def to_response(text: str, *, document: bool = False) -> SimplifyResponse:
	if not text.strip():
		logger.warning("Upstream returned an empty completion")
		text = placeholder_document(EMPTY_REPLY_MESSAGE)
	repaired = repair_output(text, document=document)
	return SimplifyResponse(simplified=repaired, sections=parse_result(repaired))


def method_not_allowed() -> JSONResponse:
	return JSONResponse(status_code=405, content={"error": "Method not allowed"})


# ============================================================================
# ENDPOINTS
# ============================================================================

@router.post("/simplify", response_model=None)
async def simplify(
	request: Request,
	http: httpx.AsyncClient = Depends(get_http_client),
	limiters: RateLimiters = Depends(get_limiters),
):
	enforce_coarse_limit(request, limiters, "simplify")
	client = OpenAIClient(http)
	req = validate_request(adapt_request(await request.body()))
	enforce_quota(request, limiters, "simplify")

	image_data_url = await resolve_image(http, req) if req.modality is Modality.IMAGE else None
	messages = messages_for(req, image_data_url)
	logger.info(
		"simplify modality=%s domain=%s level=%s chars=%d stream=%s",
		req.modality.value, req.domain.value, req.level.value, len(req.text), req.stream,
	)

	if not req.stream:
		text = await client.complete(messages)
		return to_response(text, document=req.modality is Modality.PDF_TEXT)

	upstream = await client.open_stream(messages)
	return StreamingResponse(
		relay(upstream),
		media_type="text/plain; charset=utf-8",
		headers={"Cache-Control": "no-cache"},
	)


@router.post("/analyze-image", response_model=SimplifyResponse)
async def analyze_image(
	body: AnalyzeImageRequest,
	request: Request,
	http: httpx.AsyncClient = Depends(get_http_client),
	limiters: RateLimiters = Depends(get_limiters),
):
	enforce_coarse_limit(request, limiters, "analyze-image")
	client = OpenAIClient(http)
	req = body.to_request()
	if not (req.data_url or req.image_url):
		raise InputError("Missing imageUrl or dataUrl")
	enforce_quota(request, limiters, "analyze-image")
	image_data_url = await resolve_image(http, req)
	text = await client.complete(messages_for(req, image_data_url))
	return to_response(text)


@router.post("/analyze-image/upload", response_model=SimplifyResponse)
async def analyze_image_upload(
	request: Request,
	file: UploadFile = File(...),
	level: Optional[str] = Form(None),
	domain: Optional[str] = Form(None),
	http: httpx.AsyncClient = Depends(get_http_client),
	limiters: RateLimiters = Depends(get_limiters),
):
	enforce_coarse_limit(request, limiters, "analyze-image")
	client = OpenAIClient(http)
	req = SimplificationRequest(
		modality=Modality.IMAGE,
		domain=Domain.coerce(domain),
		level=Level.coerce(level),
		stream=False,
	)
	image_data_url = await image_from_upload(file)
	enforce_quota(request, limiters, "analyze-image")
	text = await client.complete(messages_for(req, image_data_url))
	return to_response(text)


@router.post("/repair", response_model=SimplifyResponse)
async def repair(body: RepairRequest, request: Request, limiters: RateLimiters = Depends(get_limiters)):
	enforce_coarse_limit(request, limiters, "repair")
	repaired = repair_output(body.text, document=body.document)
	return SimplifyResponse(simplified=repaired, sections=parse_result(repaired))


for _path in ("/simplify", "/analyze-image", "/analyze-image/upload", "/repair"):
	router.add_api_route(_path, method_not_allowed, methods=["GET"], include_in_schema=False)
