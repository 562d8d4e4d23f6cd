"""
Section segmentation for model output.

The output contract is three canonical header lines, each exactly once and in
this order::

	1. Summary
	2. Main Points
	3. Helpful Definitions

Models drift: they bold the headers, add colons, drop the ordinal, put text on
the header line, or skip a section. ``normalize_headers`` repairs the labels in
place without moving any body; ``reassemble_sections`` is the stricter pass for
document-style output, which rebuilds the three sections in canonical order.
``section_span`` gives the bounds of one canonical section body so the
line-level repair passes can work on it in isolation.
"""

from __future__ import annotations
import re
from collections import deque
from typing import Deque, List, Optional, Tuple

CANONICAL_HEADERS: Tuple[str, str, str] = (
	"1. Summary",
	"2. Main Points",
	"3. Helpful Definitions",
)
PLACEHOLDER = "N/A"

SUMMARY, MAIN_POINTS, HELPFUL_DEFINITIONS = range(3)

_BOLD = r"(?:\*\*|__)?"
_HEADER_RE = re.compile(
	r"^[ \t]*(?:#{1,6}[ \t]*)?" + _BOLD + r"[ \t]*"
	r"(?:(?P<num>\d{1,2})[ \t]*[.)][ \t]*)?" + _BOLD + r"[ \t]*"
	r"(?P<label>summary|main[ \t]+points|(?:helpful|key)[ \t]+definitions)\b"
	r"[ \t]*" + _BOLD + r"[ \t]*"
	r"(?P<sep>[:\-–—]+)?"
	r"[ \t]*" + _BOLD + r"[ \t]*"
	r"(?P<rest>.*?)[ \t]*$",
	re.IGNORECASE,
)


def _canonical_re(header: str) -> re.Pattern:
	ordinal, label = header.split(" ", 1)
	return re.compile(
		r"^[ \t]*" + re.escape(ordinal) + r"[ \t]*" + label.replace(" ", r"[ \t]+") + r"[ \t]*$",
		re.IGNORECASE | re.MULTILINE,
	)


# Canonical header lines, as written by normalize_headers
_CANONICAL_RES = tuple(_canonical_re(h) for h in CANONICAL_HEADERS)
_NUMBERED_HEADER_RE = re.compile(
	r"^[ \t]*\d+\.[ \t]*(?:summary|main[ \t]+points|helpful[ \t]+definitions)[ \t]*$",
	re.IGNORECASE | re.MULTILINE,
)


def normalize_newlines(text: str) -> str:
	return (text or "").replace("\r\n", "\n").replace("\r", "\n")


def match_header(line: str) -> Optional[Tuple[int, str]]:
	"""
	Recognize a section header line.

	Returns ``(section_index, trailing_text)`` or None. A line with text after
	the label only counts as a header when a colon or dash separates the two,
	so prose such as "Summary of the ruling follows" stays prose.
	"""
	m = _HEADER_RE.match(line)
	if m is None:
		return None
	rest = m.group("rest")
	if rest and not m.group("sep"):
		return None
	label = m.group("label").lower()
	if label.startswith("summary"):
		index = SUMMARY
	elif label.startswith("main"):
		index = MAIN_POINTS
	else:
		index = HELPFUL_DEFINITIONS
	return index, rest


def _scan(lines: List[str]) -> List[Tuple[str, object]]:
	# ("header", index) / ("line", text); header trailing text is re-scanned as a line
	entries: List[Tuple[str, object]] = []
	pending: Deque[str] = deque(lines)
	expected = 0
	while pending:
		line = pending.popleft()
		hit = match_header(line)
		if hit is None:
			entries.append(("line", line))
			continue
		index, rest = hit
		if index >= expected:
			entries.append(("header", index))
			expected = index + 1
		elif rest:
			# Repeated label with content ("Summary: a short statement") is body text
			entries.append(("line", line))
			continue
		if rest:
			pending.appendleft(rest)
	return entries


def _trim_trailing_blanks(lines: List[str]) -> None:
	while lines and not lines[-1].strip():
		lines.pop()


def _append_placeholder(lines: List[str], index: int) -> None:
	_trim_trailing_blanks(lines)
	if lines:
		lines.append("")
	lines.append(CANONICAL_HEADERS[index])
	lines.append(PLACEHOLDER)


def normalize_headers(text: str) -> str:
	"""
	Make every canonical header appear exactly once, in order, on its own line.

	Header labels are rewritten in place and same-line content after a header
	moves to the first line of its body. A missing Summary header is put in
	front of the whole text; a missing Main Points or Helpful Definitions
	header is added with an "N/A" body, before the next present header or at
	the end. Repeated bare header lines are dropped. Running it twice gives the
	same result as running it once.
	"""
	entries = _scan(normalize_newlines(text).split("\n"))
	found = {value for kind, value in entries if kind == "header"}
	lines: List[str] = []
	if SUMMARY not in found:
		first = next((i for i, (kind, _) in enumerate(entries) if kind == "header"), len(entries))
		preamble = "\n".join(str(value) for _, value in entries[:first]).strip()
		lines = [CANONICAL_HEADERS[SUMMARY], preamble or PLACEHOLDER]
		entries = entries[first:]
		if entries:
			lines.append("")
	inserted = set()
	for kind, value in entries:
		if kind == "line":
			lines.append(str(value))
			continue
		for missing in range(MAIN_POINTS, int(value)):
			if missing not in found and missing not in inserted:
				_append_placeholder(lines, missing)
				lines.append("")
				inserted.add(missing)
		lines.append(CANONICAL_HEADERS[int(value)])
	for missing in (MAIN_POINTS, HELPFUL_DEFINITIONS):
		if missing not in found and missing not in inserted:
			_append_placeholder(lines, missing)
	return "\n".join(lines)


def reassemble_sections(text: str) -> str:
	"""
	Rebuild a document-style reply into the three canonical sections.

	Headers may be bolded, carry trailing colons or stray ordinals, and appear
	in any order. Each body is taken by position (from its header to the next
	recognized header), text before the first header joins the Summary, and
	missing or empty bodies become "N/A". The result is already canonical, so
	``normalize_headers`` leaves it unchanged.
	"""
	bodies: List[List[str]] = [[], [], []]
	preamble: List[str] = []
	current: Optional[int] = None
	seen = set()
	pending: Deque[str] = deque(normalize_newlines(text).split("\n"))
	while pending:
		line = pending.popleft()
		hit = match_header(line)
		if hit is not None:
			index, rest = hit
			if index not in seen:
				seen.add(index)
				current = index
			if rest:
				pending.appendleft(rest)
			continue
		(preamble if current is None else bodies[current]).append(line)
	bodies[SUMMARY] = preamble + bodies[SUMMARY]
	blocks = []
	for index, body in enumerate(bodies):
		content = "\n".join(body).strip() or PLACEHOLDER
		blocks.append(f"{CANONICAL_HEADERS[index]}\n{content}")
	return "\n\n".join(blocks)


def section_span(text: str, index: int) -> Optional[Tuple[int, int]]:
	"""
	Bounds of a canonical section body: from the end of its header line to the
	start of the next numbered header line (or the end of the text).
	"""
	header = _CANONICAL_RES[index].search(text)
	if header is None:
		return None
	start = header.end()
	following = _NUMBERED_HEADER_RE.search(text, start + 1) if start < len(text) else None
	end = following.start() if following else len(text)
	return start, end


def section_body(text: str, index: int) -> str:
	span = section_span(text, index)
	if span is None:
		return ""
	return text[span[0]:span[1]]
