from fastapi import APIRouter

from ..settings import settings

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
	return {"status": "ok"}


@router.get("/info")
def info():
	return {
		"status": "ok",
		"openai_configured": bool(settings.openai_api_key),
		"maintenance_mode": settings.maintenance_mode,
		"model": settings.openai_model,
	}
