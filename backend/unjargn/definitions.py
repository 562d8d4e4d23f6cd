from __future__ import annotations
import re
from typing import Optional, Tuple

from .bullets import strip_bullet_marker
from .sections import HELPFUL_DEFINITIONS, PLACEHOLDER, normalize_newlines, reassemble_sections, section_span

MAX_DASH_TERM_CHARS = 120

# "**Term:** definition" and "**Term**: definition"
_BOLD_TERM_RE = re.compile(r"^\*\*(?P<term>[^*]+?)[ \t]*(?::[ \t]*\*\*|\*\*[ \t]*:)[ \t]*(?P<definition>.*)$")
_DASH_RE = re.compile(r"^(?P<term>.+?)[ \t]+[–—-][ \t]+(?P<definition>.+)$")
_ENCLOSING = (("[", "]"), ("(", ")"))


def split_term_definition(line: str) -> Optional[Tuple[str, str]]:
	"""
	Split a definition line into ``(term, definition)``.

	Tried in order: the bolded ``**Term:**`` form, the first colon, then a
	spaced en dash, em dash or hyphen when the term is at most 120 characters.
	Returns None when none applies.
	"""
	content = strip_bullet_marker(line)
	if not content:
		return None
	m = _BOLD_TERM_RE.match(content)
	if m:
		return m.group("term").strip(), m.group("definition").strip()
	colon = content.find(":")
	if colon > 0:
		term = content[:colon].strip()
		if term:
			return term, content[colon + 1:].strip()
	m = _DASH_RE.match(content)
	if m and len(m.group("term").strip()) <= MAX_DASH_TERM_CHARS:
		return m.group("term").strip(), m.group("definition").strip()
	return None


def plain_term(term: str) -> str:
	"""Term without bold markers or a matched pair of enclosing brackets."""
	out = term.replace("**", "").strip()
	for opening, closing in _ENCLOSING:
		if len(out) > 1 and out.startswith(opening) and out.endswith(closing):
			out = out[1:-1].strip()
	return out


def format_term(term: str) -> str:
	return f"**{plain_term(term)}**"


def repair_definition_line(line: str) -> str:
	stripped = line.strip()
	if not stripped or stripped.upper() == PLACEHOLDER:
		return line
	parts = split_term_definition(line)
	if parts is None or not plain_term(parts[0]):
		return line
	term, definition = parts
	return f"- {format_term(term)}: {definition}".rstrip()


def fix_helpful_definitions_formatting(text: str, document: bool = False) -> str:
	"""
	Put every Helpful Definitions line in the ``- **Term**: definition`` form.

	Lines that cannot be split are kept as written. With ``document=True`` the
	reply is first rebuilt into canonical section order, since document-style
	output often arrives with headers out of place.
	"""
	text = reassemble_sections(text) if document else normalize_newlines(text)
	span = section_span(text, HELPFUL_DEFINITIONS)
	if span is None:
		return text
	start, end = span
	body = text[start:end]
	if not body.strip() or body.strip().upper() == PLACEHOLDER:
		return text
	lines = [repair_definition_line(line) for line in body.split("\n") if line.strip()]
	after = text[end:]
	return text[:start] + "\n" + "\n".join(lines) + ("\n\n" + after if after else "")
