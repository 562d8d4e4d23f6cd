from __future__ import annotations
from typing import List

from .bullets import fix_main_points_bullets, strip_bullet_marker
from .definitions import fix_helpful_definitions_formatting, plain_term, split_term_definition
from .schemas import Definition, SimplificationResult
from .sections import (
	HELPFUL_DEFINITIONS,
	MAIN_POINTS,
	PLACEHOLDER,
	SUMMARY,
	normalize_headers,
	reassemble_sections,
	section_body,
)


def repair_output(text: str, *, document: bool = False) -> str:
	"""
	Full post-processing pass over a finished model reply.

	Args:
		text: Raw reply text.
		document: Reply to a PDF-derived request. Sections are rebuilt in
			canonical order before the line-level repairs.

	Returns:
		Canonical three-section text.
	"""
	repaired = reassemble_sections(text) if document else text
	repaired = normalize_headers(repaired)
	repaired = fix_main_points_bullets(repaired)
	return fix_helpful_definitions_formatting(repaired)


def _is_placeholder(line: str) -> bool:
	return line.strip().upper() == PLACEHOLDER


def parse_result(text: str) -> SimplificationResult:
	canonical = normalize_headers(text)
	summary = section_body(canonical, SUMMARY).strip()

	points: List[str] = []
	for line in section_body(canonical, MAIN_POINTS).split("\n"):
		item = strip_bullet_marker(line)
		if item and not _is_placeholder(item):
			points.append(item)

	definitions: List[Definition] = []
	for line in section_body(canonical, HELPFUL_DEFINITIONS).split("\n"):
		if not line.strip() or _is_placeholder(line):
			continue
		parts = split_term_definition(line)
		if parts is None:
			definitions.append(Definition(term=strip_bullet_marker(line)))
		else:
			definitions.append(Definition(term=plain_term(parts[0]), definition=parts[1]))

	return SimplificationResult(
		summary=summary or PLACEHOLDER,
		main_points=points,
		helpful_definitions=definitions,
	)


def placeholder_document(message: str) -> str:
	"""Three-section document carrying ``message`` as its Summary."""
	return SimplificationResult(summary=message).to_text()
