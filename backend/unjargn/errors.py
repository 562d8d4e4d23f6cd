from __future__ import annotations
from typing import Dict, Optional


class SimplifyError(Exception):
	"""Base for every error the API turns into a JSON ``{error, detail}`` body."""

	status_code = 500
	error = "Internal error"

	def __init__(
		self,
		error: Optional[str] = None,
		*,
		detail: Optional[str] = None,
		headers: Optional[Dict[str, str]] = None,
	) -> None:
		self.error = error or self.error
		self.detail = detail
		self.headers = headers or {}
		super().__init__(self.error if detail is None else f"{self.error}: {detail}")

	def to_body(self) -> Dict[str, str]:
		body = {"error": self.error}
		if self.detail:
			body["detail"] = self.detail
		return body


# Validation errors (user-fixable)

class InputError(SimplifyError):
	status_code = 400
	error = "Invalid request"


class PayloadTooLarge(SimplifyError):
	status_code = 413
	error = "Input too large"


class UnsupportedMediaType(SimplifyError):
	status_code = 415
	error = "Unsupported file type"


# Policy errors (transient)

class RateLimited(SimplifyError):
	status_code = 429
	error = "Rate limit exceeded. Please try again shortly."


class ServiceUnavailable(SimplifyError):
	status_code = 503
	error = "Under maintenance"


# Upstream / configuration

class UpstreamError(SimplifyError):
	status_code = 502
	error = "Upstream model error"


class MisconfiguredError(SimplifyError):
	status_code = 500
	error = "Server misconfigured"
