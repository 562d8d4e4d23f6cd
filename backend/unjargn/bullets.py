from __future__ import annotations
import re
from typing import Iterable, List

from .sections import MAIN_POINTS, PLACEHOLDER, normalize_newlines, section_span

# "•" or an en/em dash, tight or spaced; "-", a single "*" (never "**" bold),
# "1." or "1)" only when followed by whitespace
_MARKER_RE = re.compile(r"^(?:[•–—][ \t]*|(?:-|\*(?!\*)|\d+[.)])[ \t]+)")
_SENTENCE_BREAK_RE = re.compile(r"(?<=[.!?])\s+(?=[A-Z0-9(•–—]|[-*]\s)")


def strip_bullet_marker(line: str) -> str:
	out = (line or "").strip()
	while True:
		m = _MARKER_RE.match(out)
		if m is None:
			return out
		out = out[m.end():].lstrip()


def split_sentences(paragraph: str) -> List[str]:
	return [s.strip() for s in _SENTENCE_BREAK_RE.split(paragraph) if s.strip()]


def bulletize(lines: Iterable[str]) -> str:
	items = (strip_bullet_marker(line) for line in lines)
	return "\n".join(f"- {item}" for item in items if item)


def split_points(body: str) -> List[str]:
	"""Candidate points: a marker or a blank line starts one, other lines continue it."""
	points: List[str] = []
	after_blank = True
	for raw in body.split("\n"):
		line = raw.strip()
		if not line:
			after_blank = True
			continue
		if points and not after_blank and _MARKER_RE.match(line) is None:
			points[-1] = f"{points[-1]} {line}"
		else:
			points.append(line)
		after_blank = False
	return points


def _is_placeholder(body: str) -> bool:
	stripped = body.strip()
	return not stripped or stripped.upper() == PLACEHOLDER


def fix_main_points_bullets(text: str) -> str:
	"""
	Rewrite the Main Points body as one "- " bullet per point.

	Only that body is touched. Stacked or mixed markers collapse to a single
	"- ", a body written as one paragraph is split into sentences first, and an
	empty or "N/A" body is left as is. Point order never changes.
	"""
	text = normalize_newlines(text)
	span = section_span(text, MAIN_POINTS)
	if span is None:
		return text
	start, end = span
	body = text[start:end].replace("\u00a0", " ")
	if _is_placeholder(body):
		return text
	lines = split_points(body)
	if len(lines) == 1:
		lines = split_sentences(lines[0])
	after = text[end:]
	return text[:start] + "\n" + bulletize(lines) + ("\n\n" + after if after else "")
