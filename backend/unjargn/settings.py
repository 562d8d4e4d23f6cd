from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
	openai_api_key: str | None = Field(default=None, validation_alias="OPENAI_API_KEY")
	# Any OpenAI-compatible chat completions endpoint works here
	openai_base_url: str = Field(default="https://api.openai.com/v1/chat/completions", validation_alias="OPENAI_BASE_URL")
	openai_model: str = Field(default="gpt-4o-mini", validation_alias="OPENAI_MODEL")
	# Temperature 0 keeps the section formatting stable
	openai_temperature: float = Field(default=0.0, validation_alias="OPENAI_TEMPERATURE")
	openai_max_tokens: int | None = Field(default=450, validation_alias="OPENAI_MAX_TOKENS")
	upstream_timeout_seconds: float = Field(default=60.0, validation_alias="UPSTREAM_TIMEOUT_SECONDS")

	# Maintenance gate (checked before anything else on /api/*)
	maintenance_mode: bool = Field(default=False, validation_alias="MAINTENANCE_MODE")
	maintenance_message: str = Field(default="Service temporarily unavailable.", validation_alias="MAINTENANCE_MESSAGE")

	# Rate limiting: a coarse per-address limiter and a finer per-endpoint one
	rate_limit_coarse_max: int = Field(default=30, validation_alias="RATE_LIMIT_COARSE_MAX")
	rate_limit_coarse_window_seconds: float = Field(default=60.0, validation_alias="RATE_LIMIT_COARSE_WINDOW_SECONDS")
	rate_limit_max: int = Field(default=20, validation_alias="RATE_LIMIT_MAX")
	rate_limit_window_seconds: float = Field(default=60.0, validation_alias="RATE_LIMIT_WINDOW_SECONDS")

	# Input ceilings
	max_text_chars: int = Field(default=10_000, validation_alias="MAX_TEXT_CHARS")
	max_pdf_chars: int = Field(default=15_000, validation_alias="MAX_PDF_CHARS")
	max_image_bytes: int = Field(default=3_000_000, validation_alias="MAX_IMAGE_BYTES")

	# Short-input heuristic thresholds (word count <= N or trimmed length < M)
	short_input_max_words: int = Field(default=5, validation_alias="SHORT_INPUT_MAX_WORDS")
	short_input_min_chars: int = Field(default=40, validation_alias="SHORT_INPUT_MIN_CHARS")

	cors_origins: str = Field(default="http://localhost:3000", validation_alias="CORS_ORIGINS")
	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
