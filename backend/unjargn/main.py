from contextlib import asynccontextmanager
import logging

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .errors import ServiceUnavailable, SimplifyError
from .ratelimit import RateLimiters
from .routers import health, simplify
from .settings import settings

# Configure logging
logging.basicConfig(
	level=getattr(logging, settings.log_level.upper(), logging.INFO),
	format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("unjargn")

NO_STORE = {"Cache-Control": "no-store"}


@asynccontextmanager
async def lifespan(app: FastAPI):
	# Startup
	logger.info("Starting Unjargn API (model=%s)", settings.openai_model)
	if not settings.openai_api_key:
		logger.warning("OPENAI_API_KEY is not set; simplify endpoints will return 500")
	app.state.http = httpx.AsyncClient(timeout=settings.upstream_timeout_seconds)
	app.state.limiters = RateLimiters()
	try:
		yield
	finally:
		# Shutdown
		await app.state.http.aclose()
		logger.info("Shutting down Unjargn API...")


def error_response(exc: SimplifyError) -> JSONResponse:
	return JSONResponse(status_code=exc.status_code, content=exc.to_body(), headers={**NO_STORE, **exc.headers})


async def handle_simplify_error(request: Request, exc: SimplifyError):
	return error_response(exc)


async def handle_http_exception(request: Request, exc: StarletteHTTPException):
	return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)


async def handle_validation_error(request: Request, exc: RequestValidationError):
	errors = exc.errors()
	detail = errors[0].get("msg") if errors else None
	return JSONResponse(status_code=400, content={"error": "Invalid request", "detail": detail}, headers=NO_STORE)


async def handle_unexpected(request: Request, exc: Exception):
	logger.exception("Unhandled error on %s %s", request.method, request.url.path)
	return JSONResponse(status_code=500, content={"error": "Internal error"}, headers=NO_STORE)


def create_app() -> FastAPI:
	app = FastAPI(
		title="Unjargn API",
		description="Rewrites dense text, images and PDFs into a plain-language summary, main points and definitions",
		version="1.0.0",
		lifespan=lifespan,
	)

	# Maintenance gate runs before routing; CORS is added last so it wraps the gate too
	@app.middleware("http")
	async def maintenance_gate(request: Request, call_next):
		if settings.maintenance_mode and request.url.path.startswith("/api/"):
			return error_response(ServiceUnavailable(detail=settings.maintenance_message))
		return await call_next(request)

	# CORS
	app.add_middleware(
		CORSMiddleware,
		allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
		allow_credentials=True,
		allow_methods=["*"],
		allow_headers=["*"],
	)

	app.add_exception_handler(SimplifyError, handle_simplify_error)
	app.add_exception_handler(StarletteHTTPException, handle_http_exception)
	app.add_exception_handler(RequestValidationError, handle_validation_error)
	app.add_exception_handler(Exception, handle_unexpected)

	# Routers
	app.include_router(health.router)
	app.include_router(simplify.router)
	return app


app = create_app()
