from __future__ import annotations
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class Domain(str, Enum):
	GENERAL = "general"
	LEGAL = "legal"
	MEDICAL = "medical"
	GOVERNMENT = "government"
	FINANCIAL = "financial"
	EDUCATION = "education"
	NUTRITION = "nutrition"

	@classmethod
	def coerce(cls, value: object) -> "Domain":
		"""Unknown, absent or non-string values fall back to ``general``."""
		if isinstance(value, cls):
			return value
		if isinstance(value, str):
			try:
				return cls(value.strip().lower())
			except ValueError:
				pass
		return cls.GENERAL


class Level(str, Enum):
	BEGINNER = "beginner"
	INTERMEDIATE = "intermediate"
	ADVANCED = "advanced"
	PROFESSIONAL = "professional"

	@classmethod
	def coerce(cls, value: object) -> "Level":
		"""Unknown, absent or non-string values fall back to ``intermediate``."""
		if isinstance(value, cls):
			return value
		if isinstance(value, str):
			try:
				return cls(value.strip().lower())
			except ValueError:
				pass
		return cls.INTERMEDIATE


class Modality(str, Enum):
	TEXT = "text"
	IMAGE = "image"
	PDF_TEXT = "pdf_text"


class SimplificationRequest(BaseModel):
	modality: Modality = Modality.TEXT
	text: str = ""
	domain: Domain = Domain.GENERAL
	level: Level = Level.INTERMEDIATE
	# Image modality: inline data URL or a fetchable reference
	data_url: Optional[str] = None
	image_url: Optional[str] = None
	# Declared metadata for image_url, checked before fetching
	content_type: Optional[str] = None
	size: Optional[int] = None
	stream: bool = True


class Definition(BaseModel):
	term: str
	definition: str = ""


class SimplificationResult(BaseModel):
	summary: str = "N/A"
	main_points: List[str] = Field(default_factory=list)
	helpful_definitions: List[Definition] = Field(default_factory=list)

	def to_text(self) -> str:
		points = "\n".join(f"- {p}" for p in self.main_points) or "N/A"
		definitions = "\n".join(
			f"- **{d.term}**: {d.definition}".rstrip() for d in self.helpful_definitions
		) or "N/A"
		return (
			f"1. Summary\n{self.summary or 'N/A'}\n\n"
			f"2. Main Points\n{points}\n\n"
			f"3. Helpful Definitions\n{definitions}"
		)


class SimplifyResponse(BaseModel):
	simplified: str
	sections: SimplificationResult


class RepairRequest(BaseModel):
	text: str
	document: bool = False
